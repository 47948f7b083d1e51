"""
Test helpers shared by the fixtures and the test modules
"""

import asyncio

from cms.services.email_service import EmailService

BUCKET = "cms-test-files"
ADMIN_EMAIL = "admin@example.com"
ADMIN_KEY = "admin-access-key"


class RecordingMailer(EmailService):
    """Keeps outgoing messages instead of sending them"""

    def __init__(self):
        super().__init__(None, "cms@example.com")
        self.sent = []

    async def send(self, to, subject, text):
        self.sent.append({"to": to, "subject": subject, "text": text})

    def last_code(self, email):
        for message in reversed(self.sent):
            if message["to"] == email:
                return message["text"].rsplit(" ", 1)[-1]
        return None


def run(coroutine):
    """Drive a motor-style coroutine from synchronous test code"""
    return asyncio.run(coroutine)
