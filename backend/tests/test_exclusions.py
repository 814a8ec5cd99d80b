"""Tests for the sensitive settings list."""
from presetarr.constants import DEFAULT_SENSITIVE_SETTINGS
from presetarr.services.exclusions import format_key, get_sensitive_settings, parse_exclusions


class TestParseExclusions:
    """Parsing name@@scope tokens."""

    def test_parses_tokens(self):
        assert parse_exclusions("smtppass@@none, password@@quiz") == {("none", "smtppass"), ("quiz", "password")}

    def test_empty(self):
        assert parse_exclusions("") == set()
        assert parse_exclusions(None) == set()

    def test_malformed_tokens_ignored(self):
        raw = "smtppass@@none, noseparator, @@none, name@@, a@@b@@c, , allowedip@@none"
        assert parse_exclusions(raw) == {("none", "smtppass"), ("none", "allowedip")}

    def test_whitespace_trimmed(self):
        assert parse_exclusions("  smtpuser @@ none  ") == {("none", "smtpuser")}

    def test_default_list(self):
        excluded = parse_exclusions(DEFAULT_SENSITIVE_SETTINGS)
        assert ("none", "smtppass") in excluded
        assert ("moodlecourse", "enrolpassword") in excluded
        assert len(excluded) == 12

    def test_configured_list(self):
        assert get_sensitive_settings() == {("none", "smtppass"), ("quiz", "password")}

    def test_format_key(self):
        assert format_key("mod_lesson", "maxanswers") == "maxanswers@@mod_lesson"
