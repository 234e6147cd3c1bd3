"""
Renders an ExtractedEmail as an RFC 822 style .eml document.

Only the minimal header set is written. The body is copied verbatim:
no transfer encoding, no line wrapping.
"""

from archiver.models.gmail import ExtractedEmail

CRLF = "\r\n"


def to_eml(email: ExtractedEmail) -> str:
    """
    Build the .eml text for one message.

    Header order: From, To, Cc, Bcc, Subject, Date (each only when non-empty),
    then Message-ID, MIME-Version and Content-Type, a blank line, the body.
    """
    optional_headers = [
        ("From", email.from_),
        ("To", email.to),
        ("Cc", email.cc),
        ("Bcc", email.bcc),
        ("Subject", email.subject),
        ("Date", email.date),
    ]
    lines = [f"{name}: {value}" for name, value in optional_headers if value]
    lines.extend([
        f"Message-ID: <{email.message_id}@gmail>",
        "MIME-Version: 1.0",
        f'Content-Type: {email.body_mime.value}; charset="UTF-8"',
    ])
    return CRLF.join(lines) + CRLF + CRLF + email.body
