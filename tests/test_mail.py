import pytest

from osd_ext_info import fetch
from osd_ext_info.modalities import mail
from osd_ext_info.registry import ModalityConfig


def mail_modality(**overrides):
    options = dict(mail.DEFAULTS)
    options.update(overrides)
    return ModalityConfig.from_options("osd-email", options)


@pytest.fixture
def reply(monkeypatch):
    """Make curl return the given text and record its arguments."""
    calls = []

    def install(text=None, error=None):
        def fake_curl(url, data=None, userpass=None, request=None):
            calls.append({"url": url, "userpass": userpass, "request": request})
            if error:
                raise fetch.FetchError(error, output=error)
            return text
        monkeypatch.setattr(fetch, "curl", fake_curl)
        return calls

    return install


def test_unseen_count_gives_positive_message(reply):
    calls = reply("* STATUS INBOX (UNSEEN 5)\r\n")
    modality = mail_modality(response=r"UNSEEN (\d+)", cntofs=0)

    assert mail.handler(modality) == "You have 5 new email(s)"
    assert calls == [{"url": "imap://imap.domain", "userpass": "login:pass",
                      "request": "STATUS INBOX (UNSEEN)"}]


def test_default_pattern_matches_quoted_inbox(reply):
    reply('* STATUS "INBOX" (UNSEEN 122)\r\n')
    assert mail.handler(mail_modality()) == "You have 122 new email(s)"


def test_offset_down_to_zero(reply):
    reply("* STATUS INBOX (UNSEEN 3)")
    assert mail.handler(mail_modality(cntofs=3)) == "No new emails"


def test_negative_count_warns_about_offset(reply):
    reply("* STATUS INBOX (UNSEEN 1)")
    assert mail.handler(mail_modality(cntofs=4)) == "WRN: fix offset cntofs:4"


def test_unparseable_response_gives_error_with_raw_text(reply):
    reply("* BAD unknown command")
    message = mail.handler(mail_modality())
    assert message == "ERR: * BAD unknown command"


def test_fetch_failure_gives_error_message(reply):
    reply(error="curl: (6) Could not resolve host: imap.domain")
    message = mail.handler(mail_modality())
    assert message.startswith("ERR: ")
    assert "Could not resolve host" in message


def test_extract_count_never_raises():
    assert mail.extract_count("", r"UNSEEN (\d+)") is None
    assert mail.extract_count(None, r"UNSEEN (\d+)") is None
    assert mail.extract_count("UNSEEN 7", r"UNSEEN (") is None
    assert mail.extract_count("UNSEEN x", r"UNSEEN (\w+)") is None
    assert mail.extract_count("UNSEEN 7", r"UNSEEN (\d+)") == 7


def test_mail_is_off_by_default():
    assert mail.ENABLED is False
