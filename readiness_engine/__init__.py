"""
Security Readiness Assessment Engine
====================================
Scores weighted multiple-choice security assessments per category, enforces
a bounded number of attempts per subject, and derives trend and
recommendation data from the attempt history.

The engine owns no HTTP routing, authentication, or document rendering.
Callers talk to it through ``AssessmentService``.
"""

__version__ = "1.0.0"
__author__ = "Security Readiness Engine"
