"""
Config Manager

Main configuration manager with include system support.
Loads modular YAML files and builds the typed configuration objects:
variants and timings (MotionConfig), form fields, transport credentials
(EmailTransportConfig) and page content.
"""

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

from portfolio_motion.errors import ConfigurationError
from portfolio_motion.models.config import (
    DEFAULT_RESET_DELAY_MS,
    EMAILJS_ENDPOINT,
    EmailTransportConfig,
    MotionConfig,
)
from portfolio_motion.models.enums import FieldKind, LogCategory
from portfolio_motion.models.submission import DEFAULT_CONTACT_FIELDS, FormField, SubmissionMessages
from portfolio_motion.models.variant import AnimationVariant
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.CONFIG)

PACKAGE_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

# Environment keys read once at startup, never from inside the core
ENV_SERVICE_ID = "EMAILJS_SERVICE_ID"
ENV_TEMPLATE_ID = "EMAILJS_TEMPLATE_ID"
ENV_PUBLIC_KEY = "EMAILJS_PUBLIC_KEY"


class ConfigManager:
    """
    Main configuration manager with include system support

    Loads config.yaml and processes the include: directive to load modular
    YAML files. Falls back to factory_defaults.yaml when the main config
    (or any include) cannot be read.

    Example:
        config = ConfigManager()
        config.load()

        motion = config.motion_config()            # MotionConfig
        item = motion.variant("item")              # AnimationVariant
        transport = config.transport_config()      # EmailTransportConfig
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        defaults_path: Optional[Path] = None
    ):
        """
        Initialize ConfigManager

        Args:
            config_path: Path to main config.yaml (defaults to the packaged one)
            defaults_path: Path to factory defaults fallback
        """
        self.config_path = Path(config_path) if config_path else PACKAGE_CONFIG_DIR / "config.yaml"
        self.factory_defaults_path = (
            Path(defaults_path) if defaults_path else PACKAGE_CONFIG_DIR / "factory_defaults.yaml"
        )
        self.data: Dict = {}
        self.used_defaults = False

    # ===== Loading =====

    def load(self) -> Dict:
        """
        Load YAML configuration with include system support

        Process:
        1. Load main config.yaml
        2. If it has 'include:' list, load and merge those files
        3. Otherwise treat as monolithic config
        4. Fallback to factory defaults on failure

        Returns:
            Merged config data dict
        """
        try:
            main_config = self._read_yaml(self.config_path)

            if 'include' in main_config:
                log.info("Using include-based configuration")
                self.data = self._load_with_includes(main_config['include'], self.config_path.parent)
            else:
                log.info("Using monolithic configuration")
                self.data = main_config
            self.used_defaults = False

        except (OSError, yaml.YAMLError, ConfigurationError) as ex:
            log.error("Failed to load config.yaml", error=str(ex), error_type=type(ex).__name__)
            log.warn("Falling back to factory defaults")

            self.data = self._read_yaml(self.factory_defaults_path)
            self.used_defaults = True

        return self.data

    def _read_yaml(self, path: Path) -> Dict:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path.name} must contain a mapping at top level")
        return data

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict:
        """
        Load and merge multiple YAML files from include list

        Args:
            include_list: List of filenames to load (e.g., ["motion.yaml", "form.yaml"])
            config_dir: Directory containing config files

        Returns:
            Merged config dict
        """
        merged = {}

        for filename in include_list:
            file_data = self._read_yaml(config_dir / filename)
            if file_data:
                merged.update(file_data)
                log.info(f"Loaded {filename}", keys=str(list(file_data.keys())))

        log.info("Config merge complete", total_keys=len(merged), keys=str(list(merged.keys())[:10]))
        return merged

    def _ensure_loaded(self) -> None:
        if not self.data:
            self.load()

    # ===== Typed views =====

    def _section(self, data: Mapping, key: str) -> Mapping:
        """Sub-mapping of data; missing/empty → {}, anything else → ConfigurationError"""
        value = data.get(key) or {}
        if not isinstance(value, Mapping):
            raise ConfigurationError(f"'{key}' must be a mapping, got {type(value).__name__}")
        return value

    def _number(self, value, key: str, convert=int):
        try:
            return convert(value)
        except (TypeError, ValueError) as ex:
            raise ConfigurationError(f"'{key}' must be a number, got {value!r}") from ex

    def motion_config(self) -> MotionConfig:
        """
        Build variants, timings and messages.

        Raises:
            ConfigurationError: any variant or timing value is malformed (nothing is built)
        """
        self._ensure_loaded()
        motion = self._section(self.data, "motion")
        form = self._section(self.data, "form")

        variants = {}
        for name, variant_data in self._section(motion, "variants").items():
            variants[name] = AnimationVariant.from_dict(name, variant_data)
            log.debug(f"Loaded variant: {name}", container=variants[name].is_container)

        if not variants:
            log.warn("No animation variants defined in config!")

        reset_delay_ms = self._number(form.get("reset_delay_ms", DEFAULT_RESET_DELAY_MS), "form.reset_delay_ms")
        if reset_delay_ms < 0:
            raise ConfigurationError(f"form.reset_delay_ms must be non-negative, got {reset_delay_ms}")

        tween_steps = self._number(motion.get("tween_steps", 12), "motion.tween_steps")
        if tween_steps < 1:
            raise ConfigurationError(f"motion.tween_steps must be at least 1, got {tween_steps}")

        return MotionConfig(
            variants=variants,
            reset_delay_ms=reset_delay_ms,
            messages=self._parse_messages(self._section(form, "messages")),
            tween_steps=tween_steps,
        )

    def _parse_messages(self, data: Mapping) -> SubmissionMessages:
        defaults = SubmissionMessages()
        return SubmissionMessages(
            pending=str(data.get("pending", defaults.pending)),
            success=str(data.get("success", defaults.success)),
            failure=str(data.get("failure", defaults.failure)),
        )

    def form_fields(self) -> Tuple[FormField, ...]:
        """Declared contact form fields (defaults: name, email, message)"""
        self._ensure_loaded()
        fields_data = self._section(self.data, "form").get("fields")
        if not fields_data:
            return DEFAULT_CONTACT_FIELDS

        fields = []
        for entry in fields_data:
            try:
                fields.append(FormField(
                    name=str(entry["name"]),
                    kind=FieldKind(entry.get("kind", "text")),
                    placeholder=str(entry.get("placeholder", "")),
                    required=bool(entry.get("required", True)),
                ))
            except (KeyError, ValueError, TypeError, AttributeError) as ex:
                raise ConfigurationError(f"Invalid form field entry {entry!r}: {ex}") from ex
        return tuple(fields)

    def transport_config(self, env: Optional[Mapping[str, str]] = None) -> EmailTransportConfig:
        """
        EmailJS credentials: YAML values, overridden by the environment.

        Called once at startup; the result is handed to the transport
        constructor explicitly.

        Raises:
            ConfigurationError: a credential is missing after overrides
        """
        self._ensure_loaded()
        env = os.environ if env is None else env
        transport = self._section(self.data, "transport")

        values = {
            "service_id": env.get(ENV_SERVICE_ID) or transport.get("service_id") or "",
            "template_id": env.get(ENV_TEMPLATE_ID) or transport.get("template_id") or "",
            "public_key": env.get(ENV_PUBLIC_KEY) or transport.get("public_key") or "",
        }
        missing = [k for k, v in values.items() if not v]
        if missing:
            raise ConfigurationError(f"Transport credentials missing: {', '.join(missing)}")

        return EmailTransportConfig(
            service_id=str(values["service_id"]),
            template_id=str(values["template_id"]),
            public_key=str(values["public_key"]),
            endpoint=str(transport.get("endpoint") or EMAILJS_ENDPOINT),
            timeout_s=self._number(transport.get("timeout_s", 10.0), "transport.timeout_s", float),
        )

    def page_content(self) -> Dict:
        """Raw page section content (names used to shape layouts)"""
        self._ensure_loaded()
        return self._section(self.data, "page")
