# =============================================================================
# Pytest Configuration and Fixtures
# =============================================================================
# Shared fixtures for the Junkfilter test suite.
# =============================================================================

import pytest
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from pathlib import Path

from junkfilter.junk import Params


HAM_BODIES = [
    "Please review the meeting agenda before we meet, item {i}.",
    "The meeting agenda for the quarterly review is attached, version {i}.",
    "Can we move the meeting agenda discussion to room {i}?",
]

SPAM_BODIES = [
    "Get free viagra now, limited offer number {i}!",
    "Cheap pills: free viagra now while stock lasts, code {i}.",
    "Order free viagra now and save big, deal {i}!!!",
]

BASE_DATE = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


def make_message(
    subject: str,
    body: str,
    *,
    sender: str = "alice@example.com",
    date: datetime | None = None,
    extra_headers: dict[str, str] | None = None,
) -> bytes:
    """Build a simple RFC 5322 text/plain message."""
    lines = [
        f"From: {sender}",
        "To: bob@example.com",
        f"Subject: {subject}",
    ]
    if date is not None:
        lines.append(f"Date: {format_datetime(date)}")
    for name, value in (extra_headers or {}).items():
        lines.append(f"{name}: {value}")
    lines += [
        "MIME-Version: 1.0",
        "Content-Type: text/plain; charset=utf-8",
        "",
        body,
        "",
    ]
    return "\r\n".join(lines).encode("utf-8")


@dataclass
class Corpus:
    """A labeled corpus on disk."""
    ham_dir: Path
    spam_dir: Path
    sent_dir: Path


def write_corpus(root: Path, nham: int = 10, nspam: int = 10, nsent: int = 3) -> Corpus:
    """
    Write ham, spam and sent directories.

    Hams, spams and sent messages are interleaved in time, one hour apart.
    """
    corpus = Corpus(root / "ham", root / "spam", root / "sent")
    for directory in (corpus.ham_dir, corpus.spam_dir, corpus.sent_dir):
        directory.mkdir(parents=True)

    hour = 0
    for i in range(max(nham, nspam, nsent)):
        if i < nham:
            (corpus.ham_dir / f"ham{i:02d}.eml").write_bytes(make_message(
                f"Team sync {i}",
                HAM_BODIES[i % len(HAM_BODIES)].format(i=i),
                sender="carol@example.com",
                date=BASE_DATE + timedelta(hours=hour),
            ))
            hour += 1
        if i < nspam:
            (corpus.spam_dir / f"spam{i:02d}.eml").write_bytes(make_message(
                f"Amazing offer {i}",
                SPAM_BODIES[i % len(SPAM_BODIES)].format(i=i),
                sender="winner@totallylegit.example",
                date=BASE_DATE + timedelta(hours=hour),
            ))
            hour += 1
        if i < nsent:
            (corpus.sent_dir / f"sent{i:02d}.eml").write_bytes(make_message(
                f"Re: Team sync {i}",
                "Thanks, the meeting agenda looks good to me.",
                sender="bob@example.com",
                date=BASE_DATE + timedelta(hours=hour),
            ))
            hour += 1
    return corpus


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def params():
    """Parameters with single words and word pairs."""
    return Params(one_grams=True, two_grams=True)


@pytest.fixture
def corpus(temp_dir):
    """A 10 ham / 10 spam / 3 sent corpus."""
    return write_corpus(temp_dir / "corpus")


@pytest.fixture
def filter_paths(temp_dir):
    """Word store and rarity filter paths in the temporary directory."""
    return temp_dir / "filter.json", temp_dir / "filter.bloom"


@pytest.fixture
def sample_spam_message():
    """A raw spam message for classifier testing."""
    return make_message(
        "URGENT!!! You've WON!!!",
        "Free viagra now. Click here NOW to claim your prize!",
        sender="winner@totallylegit.example",
        date=BASE_DATE,
    )


@pytest.fixture
def sample_html_email():
    """Sample HTML-only email."""
    html = """<!DOCTYPE html>
<html>
<head>
    <style>
        body { font-family: Arial, sans-serif; }
        .hidden { display: none; }
    </style>
</head>
<body>
    <h1>Welcome to Our Newsletter!</h1>
    <p>Hello <strong>User</strong>, claim your <a href="https://example.com">free prize</a>.</p>
    <img src="cid:logo123" alt="Company Logo" width="200">
</body>
</html>"""
    return "\r\n".join([
        "From: News <news@example.com>",
        "Subject: Newsletter",
        "Date: Mon, 15 Jan 2024 10:30:00 +0100",
        "MIME-Version: 1.0",
        "Content-Type: text/html; charset=utf-8",
        "",
        html,
        "",
    ]).encode("utf-8")
