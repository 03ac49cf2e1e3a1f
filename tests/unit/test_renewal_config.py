"""Unit tests for renewal method detection."""

import pytest

from lecert.services.renewal_config import (
    MANUAL_LABEL,
    UNKNOWN_LABEL,
    authenticator_label,
    parse_renewal_config,
    resolve_renewal_method,
)


class TestParseRenewalConfig:
    """Tests for parse_renewal_config."""

    def test_reads_key_values(self):
        """Keys inside sections should be found."""
        values = parse_renewal_config(
            "version = 2.9.0\n[renewalparams]\nauthenticator = webroot\n"
        )
        assert values["version"] == "2.9.0"
        assert values["authenticator"] == "webroot"

    def test_skips_comments(self):
        """Commented lines must not be treated as settings."""
        values = parse_renewal_config(
            "# authenticator = nginx\n; authenticator = apache\nauthenticator = standalone\n"
        )
        assert values["authenticator"] == "standalone"

    def test_first_occurrence_wins(self):
        """Repeated keys keep their first value."""
        values = parse_renewal_config("authenticator = nginx\nauthenticator = apache\n")
        assert values["authenticator"] == "nginx"

    def test_section_nested_keys(self):
        """Keys in later sections are still collected."""
        values = parse_renewal_config(
            "[renewalparams]\nauthenticator = webroot\n[[webroot_map]]\nexample.com = /var/www\n"
        )
        assert values["example.com"] == "/var/www"


class TestAuthenticatorLabel:
    """Tests for authenticator_label."""

    @pytest.mark.parametrize("raw,label", [
        ("webroot", "Certbot (Webroot)"),
        ("nginx", "Certbot (Nginx)"),
        ("apache", "Certbot (Apache)"),
        ("standalone", "Certbot (Standalone)"),
        ("dns-cloudflare", "Certbot (DNS)"),
        ("dns-route53", "Certbot (DNS)"),
    ])
    def test_known_plugins(self, raw, label):
        """Known plugins map to fixed labels."""
        assert authenticator_label(raw) == label

    def test_unrecognized_plugin(self):
        """Other plugins are shown by name."""
        assert authenticator_label("manual") == "Certbot (manual)"

    def test_empty_authenticator(self):
        """A missing authenticator is labelled Unknown."""
        assert authenticator_label("") == "Certbot (Unknown)"


class TestResolveRenewalMethod:
    """Tests for resolve_renewal_method."""

    def test_config_present(self, letsencrypt_dir, add_renewal_conf):
        """The renewal config decides when it exists."""
        add_renewal_conf("example.com", "nginx")
        method = resolve_renewal_method(
            "example.com",
            letsencrypt_dir / "renewal",
            letsencrypt_dir / "live",
        )
        assert method == "Certbot (Nginx)"

    def test_only_certificate_material(self, letsencrypt_dir, add_live_cert):
        """Certificate files without a renewal config mean manual issuance."""
        add_live_cert("manual.example.com", "manual.example.com", days=40)
        method = resolve_renewal_method(
            "manual.example.com",
            letsencrypt_dir / "renewal",
            letsencrypt_dir / "live",
        )
        assert method == MANUAL_LABEL

    def test_nothing_known(self, letsencrypt_dir):
        """No config and no files gives Unknown."""
        method = resolve_renewal_method(
            "ghost.example.com",
            letsencrypt_dir / "renewal",
            letsencrypt_dir / "live",
        )
        assert method == UNKNOWN_LABEL

    def test_missing_directories(self, tmp_path):
        """Absent certbot directories never raise."""
        method = resolve_renewal_method("x", tmp_path / "nope", tmp_path / "nada")
        assert method == UNKNOWN_LABEL

    def test_config_without_authenticator(self, letsencrypt_dir):
        """A config lacking the authenticator line is still certbot-managed."""
        (letsencrypt_dir / "renewal" / "odd.conf").write_text("version = 2.9.0\n")
        method = resolve_renewal_method(
            "odd",
            letsencrypt_dir / "renewal",
            letsencrypt_dir / "live",
        )
        assert method == "Certbot (Unknown)"
