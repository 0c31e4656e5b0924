"""
Built-in starter catalog — ten questions across five security categories.
"""

from __future__ import annotations

from .models import AnswerOption, Question


def _q(qid, category, weight, text, options, audience="both") -> Question:
    return Question(
        id=qid,
        category=category,
        weight=weight,
        text=text,
        audience=audience,
        options=tuple(
            AnswerOption(label=label, weight=w, text=t) for label, t, w in options
        ),
    )


SEED_QUESTIONS: tuple[Question, ...] = (
    _q("AUTH-001", "Authentication", 10,
       "Which authentication method is used for logging into company systems?", [
           ("A", "Username + password + OTP or authenticator app", 100),
           ("B", "Username + password only", 60),
           ("C", "Biometric login only (fingerprint/face ID)", 80),
           ("D", "No authentication is required", 0),
       ]),
    _q("AUTH-002", "Authentication", 10,
       "Which of these best describes how multi-factor authentication (MFA) is used by you?", [
           ("A", "Enabled on all critical accounts (email, banking, work)", 100),
           ("B", "Enabled only on financial or work-related apps", 80),
           ("C", "Used rarely, only when enforced", 40),
           ("D", "Never used MFA", 0),
       ]),
    _q("DATA-001", "Data Protection", 8,
       "How are system backups handled?", [
           ("A", "Automated, encrypted backups to secure cloud", 100),
           ("B", "Manual backups done weekly", 70),
           ("C", "Occasionally backup important files", 40),
           ("D", "No backup process in place", 0),
       ]),
    _q("DATA-002", "Data Protection", 7,
       "How is confidential data shared within your team?", [
           ("A", "Through encrypted channels with limited access", 100),
           ("B", "Shared via internal tools like email or chat", 60),
           ("C", "Shared freely with anyone who asks", 20),
           ("D", "No formal rule for data sharing", 30),
       ]),
    _q("DEV-001", "Device Security", 8,
       "How is your device protected when not in use?", [
           ("A", "Auto-locked with strong password or biometric", 100),
           ("B", "Only screensaver or screen lock", 60),
           ("C", "No lock, anyone can use it", 0),
           ("D", "I manually lock it when I remember", 30),
       ]),
    _q("DEV-002", "Device Security", 9,
       "How is antivirus or endpoint protection managed?", [
           ("A", "Centrally managed antivirus or EDR installed", 100),
           ("B", "Free antivirus software installed by the user", 70),
           ("C", "No antivirus installed", 0),
           ("D", "I'm not sure about protection status", 20),
       ]),
    _q("NET-001", "Network Security", 7,
       "How do you connect to the internet for work or personal use?", [
           ("A", "Secure, private Wi-Fi with WPA3 or WPA2 encryption", 100),
           ("B", "Home Wi-Fi with unchanged router password", 50),
           ("C", "Frequently use public Wi-Fi (cafes, malls, stations)", 20),
           ("D", "I use mobile hotspots most of the time", 70),
       ]),
    _q("PWD-001", "Password Management", 10,
       "How do you manage your passwords across platforms?", [
           ("A", "Use a password manager with unique passwords for each account", 100),
           ("B", "Maintain a notebook with all passwords written down", 60),
           ("C", "Use the same password with slight variations", 30),
           ("D", "Memorize one common password and reuse it", 10),
       ]),
    _q("PWD-002", "Password Management", 8,
       "How often do you change your passwords?", [
           ("A", "Every 3-6 months", 100),
           ("B", "Only when prompted or forced", 70),
           ("C", "Rarely or never", 30),
           ("D", "I only change them if there's a security issue", 50),
       ]),
    _q("PWD-003", "Password Management", 9,
       "What is the length of your typical password?", [
           ("A", "12+ characters with special symbols and numbers", 100),
           ("B", "8-11 characters with some variety", 75),
           ("C", "6-7 characters, mostly alphabets", 40),
           ("D", "4-5 characters, usually easy to remember", 10),
       ]),
)
