"""
Tests for ConfigManager: packaged config, include merging, factory-default
fallback and typed views.
"""

import pytest

from portfolio_motion.errors import ConfigurationError
from portfolio_motion.managers.config_manager import (
    ENV_PUBLIC_KEY,
    ENV_SERVICE_ID,
    ENV_TEMPLATE_ID,
    ConfigManager,
)
from portfolio_motion.models.config import EMAILJS_ENDPOINT
from portfolio_motion.models.enums import FieldKind

CREDENTIALS = {
    ENV_SERVICE_ID: "svc_env",
    ENV_TEMPLATE_ID: "tpl_env",
    ENV_PUBLIC_KEY: "pk_env",
}


@pytest.fixture
def packaged():
    config = ConfigManager()
    config.load()
    return config


def write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


class TestPackagedConfig:

    def test_loads_includes(self, packaged):
        assert not packaged.used_defaults
        assert {"motion", "form", "transport", "page"} <= set(packaged.data)

    def test_motion_config(self, packaged):
        motion = packaged.motion_config()

        assert motion.reset_delay_ms == 5000
        assert motion.variant("section").stagger_delay_ms == 150
        assert motion.variant("list").stagger_delay_ms == 100
        assert not motion.variant("item").is_container
        assert motion.variant("status").exit is not None
        assert motion.messages.success == "Thank you! Your message has been sent successfully."

    def test_unknown_variant(self, packaged):
        with pytest.raises(ConfigurationError):
            packaged.motion_config().variant("bounce")

    def test_form_fields(self, packaged):
        fields = packaged.form_fields()
        assert [f.name for f in fields] == ["name", "email", "message"]
        assert fields[1].kind == FieldKind.EMAIL
        assert all(f.required for f in fields)

    def test_page_content(self, packaged):
        cp = packaged.page_content()["competitive_programming"]
        assert "Codeforces" in cp["platforms"]


class TestFallback:

    def test_broken_include_falls_back_to_factory_defaults(self, tmp_path):
        config_path = write(tmp_path / "config.yaml", "include:\n  - missing.yaml\n")

        config = ConfigManager(config_path=config_path)
        config.load()

        assert config.used_defaults
        assert config.motion_config().variant("item").visible.duration_ms == 500

    def test_invalid_yaml_falls_back(self, tmp_path):
        config_path = write(tmp_path / "config.yaml", "motion: [unclosed\n")

        config = ConfigManager(config_path=config_path)
        config.load()

        assert config.used_defaults

    def test_monolithic_config(self, tmp_path):
        config_path = write(tmp_path / "config.yaml", (
            "motion:\n"
            "  variants:\n"
            "    item:\n"
            "      hidden: {opacity: 0}\n"
            "      visible: {opacity: 1}\n"
            "form:\n"
            "  reset_delay_ms: 2500\n"
        ))

        config = ConfigManager(config_path=config_path)
        motion = config.motion_config()

        assert not config.used_defaults
        assert motion.reset_delay_ms == 2500
        assert list(motion.variants) == ["item"]


class TestValidation:

    def test_variant_missing_visible_state(self, tmp_path):
        config_path = write(tmp_path / "config.yaml", (
            "motion:\n"
            "  variants:\n"
            "    item:\n"
            "      hidden: {opacity: 0}\n"
        ))

        with pytest.raises(ConfigurationError, match="visible"):
            ConfigManager(config_path=config_path).motion_config()

    def test_negative_reset_delay(self, tmp_path):
        config_path = write(tmp_path / "config.yaml", "form:\n  reset_delay_ms: -5\n")

        with pytest.raises(ConfigurationError):
            ConfigManager(config_path=config_path).motion_config()

    def test_bad_field_kind(self, tmp_path):
        config_path = write(tmp_path / "config.yaml", (
            "form:\n"
            "  fields:\n"
            "    - {name: phone, kind: telephone}\n"
        ))

        with pytest.raises(ConfigurationError):
            ConfigManager(config_path=config_path).form_fields()

    @pytest.mark.parametrize("text", [
        "form:\n  reset_delay_ms: soon\n",
        "motion:\n  tween_steps: many\n",
        "motion:\n  tween_steps: 0\n",
        "motion:\n  variants:\n    - item\n    - list\n",
        "motion: 5\n",
        "form:\n  messages: [hello]\n",
    ])
    def test_malformed_motion_values(self, tmp_path, text):
        config_path = write(tmp_path / "config.yaml", text)

        with pytest.raises(ConfigurationError):
            ConfigManager(config_path=config_path).motion_config()

    def test_non_numeric_transport_timeout(self, tmp_path):
        config_path = write(tmp_path / "config.yaml", "transport:\n  timeout_s: forever\n")

        with pytest.raises(ConfigurationError, match="timeout_s"):
            ConfigManager(config_path=config_path).transport_config(env=CREDENTIALS)


class TestTransportConfig:

    def test_environment_provides_credentials(self, packaged):
        transport = packaged.transport_config(env=CREDENTIALS)

        assert transport.service_id == "svc_env"
        assert transport.template_id == "tpl_env"
        assert transport.public_key == "pk_env"
        assert transport.endpoint == EMAILJS_ENDPOINT
        assert transport.timeout_s == 10.0

    def test_environment_overrides_yaml(self, tmp_path):
        config_path = write(tmp_path / "config.yaml", (
            "transport:\n"
            "  service_id: svc_yaml\n"
            "  template_id: tpl_yaml\n"
            "  public_key: pk_yaml\n"
        ))
        config = ConfigManager(config_path=config_path)

        from_yaml = config.transport_config(env={})
        overridden = config.transport_config(env={ENV_SERVICE_ID: "svc_env"})

        assert from_yaml.service_id == "svc_yaml"
        assert overridden.service_id == "svc_env"
        assert overridden.template_id == "tpl_yaml"

    def test_missing_credentials(self, packaged):
        with pytest.raises(ConfigurationError, match="public_key"):
            packaged.transport_config(env={ENV_SERVICE_ID: "svc", ENV_TEMPLATE_ID: "tpl"})
