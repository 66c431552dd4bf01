#!/usr/bin/env python3
"""
Configuration Manager for PharmOutcomes Auto-Entry
Description:
Handles configuration loading from a JSON file, environment variables and
command line overrides, validation of required settings, and default values
for timeouts and site locations.
"""

import os
import json
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

from base_exceptions import MissingConfigurationError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

@dataclass
class AutomationModeConfig:
    """Browser launch settings"""
    headless: bool = False
    slow_motion: int = 100  # milliseconds
    timeout: int = 30000  # milliseconds

@dataclass
class AutomationConfig:
    """General automation settings"""
    log_level: str = "INFO"
    enable_performance_monitoring: bool = True

@dataclass
class TimeoutConfig:
    """Bounded waits, in milliseconds"""
    suggestion_popup: int = 10000
    clickable: int = 3000
    quantity_error: int = 2000
    transient_picker: int = 1000
    navigation: int = 30000
    type_delay: int = 10

@dataclass
class SiteConfig:
    """Locations and fixed values of the target web application"""
    login_url: str = "https://pharmoutcomes.org/pharmoutcomes/"
    consultation_url: str = (
        "https://pharmoutcomes.org/pharmoutcomes/services/enter"
        "?id=122581&xid=122581&xact=provisionnew"
    )
    registration_url: str = (
        "https://pharmoutcomes.org/pharmoutcomes/services/enter"
        "?id=122578&xid=122578&xact=provisionnew"
    )
    pharmacy_link_name: str = "Stone Pharmacy (Meds2u Limited)"
    secondary_auth_marker: str = "passcode?enter"
    submission_failed_pattern: str = r"xact=provision(new|edit)"
    ethnicity: str = "Z - Not stated"
    levy_status_default: str = "H - gets Income Support or income related ESA"

@dataclass
class CredentialsConfig:
    """Login identity and the secondary-authentication secret"""
    user_login: str = ""
    password: str = ""
    secret: str = ""

@dataclass
class RunConfig:
    """Per-run input, output and operating flags"""
    input_file: str = ""
    output_dir: str = ""
    dry_run: bool = False
    pause_before_submit: bool = False

@dataclass
class EntryAutomationConfig:
    """Complete configuration for PharmOutcomes Auto-Entry"""
    automation: AutomationConfig = field(default_factory=AutomationConfig)
    automation_mode: AutomationModeConfig = field(default_factory=AutomationModeConfig)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    site: SiteConfig = field(default_factory=SiteConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    run: RunConfig = field(default_factory=RunConfig)

# JSON section name -> dataclass
_SECTIONS = {
    'automation': AutomationConfig,
    'automation_mode': AutomationModeConfig,
    'timeouts': TimeoutConfig,
    'site': SiteConfig,
    'credentials': CredentialsConfig,
    'run': RunConfig,
}

class ConfigurationManager:
    """
    Manages configuration loading, validation, and default values
    """

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = Path(config_file) if config_file else None
        self.logger = logging.getLogger(f"{__name__}.ConfigurationManager")

    def load_configuration(self, overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> EntryAutomationConfig:
        """
        Load configuration from the JSON file, environment variables and overrides.

        Overrides are keyed by section name, e.g. {"run": {"dry_run": True}};
        None values are ignored so unset CLI flags do not clobber the environment.

        Raises:
            MissingConfigurationError: if credentials, input file or output dir are absent.
        """
        self.logger.info("Loading configuration from JSON file and environment variables")

        config = EntryAutomationConfig()
        if self.config_file:
            config = self._load_from_json_file(self.config_file)

        config = self._load_from_environment(config)

        if overrides:
            config = self._apply_overrides(config, overrides)

        config = self._apply_default_values(config)
        self._validate_configuration(config)

        self.logger.info("Configuration loaded successfully")
        return config

    def _load_from_json_file(self, config_path: Path) -> EntryAutomationConfig:
        """Load configuration from a single JSON file"""
        if not config_path.exists():
            self.logger.warning(f"Configuration file not found: {config_path}, using defaults")
            return EntryAutomationConfig()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in configuration file {config_path}: {e}")
            return EntryAutomationConfig()

        return self._parse_config_data(config_data)

    def _parse_config_data(self, config_data: Dict[str, Any]) -> EntryAutomationConfig:
        """Parse configuration data from JSON"""
        config = EntryAutomationConfig()

        for section_name, section_cls in _SECTIONS.items():
            if section_name not in config_data:
                continue
            section_data = config_data[section_name] or {}
            unknown = [k for k in section_data if k not in section_cls.__dataclass_fields__]
            if unknown:
                self.logger.warning(f"Ignoring unknown keys in '{section_name}': {', '.join(unknown)}")
            setattr(config, section_name, section_cls(**{
                k: v for k, v in section_data.items()
                if k in section_cls.__dataclass_fields__
            }))

        return config

    def _load_from_environment(self, config: EntryAutomationConfig) -> EntryAutomationConfig:
        """Override configuration with environment variables"""
        # Automation mode settings
        config.automation_mode.headless = self._get_env_bool('AUTOMATION_HEADLESS', config.automation_mode.headless)
        config.automation_mode.slow_motion = self._get_env_int('AUTOMATION_SLOW_MOTION', config.automation_mode.slow_motion)
        config.automation_mode.timeout = self._get_env_int('AUTOMATION_TIMEOUT', config.automation_mode.timeout)

        # Automation settings
        config.automation.log_level = os.getenv('AUTOMATION_LOG_LEVEL', config.automation.log_level)
        config.automation.enable_performance_monitoring = self._get_env_bool(
            'AUTOMATION_PERFORMANCE_MONITORING', config.automation.enable_performance_monitoring)

        # Site settings
        config.site.login_url = os.getenv('PHARMOUTCOMES_LOGIN_URL', config.site.login_url)
        config.site.consultation_url = os.getenv('PHARMOUTCOMES_CONSULTATION_URL', config.site.consultation_url)
        config.site.registration_url = os.getenv('PHARMOUTCOMES_REGISTRATION_URL', config.site.registration_url)
        config.site.pharmacy_link_name = os.getenv('PHARMOUTCOMES_PHARMACY', config.site.pharmacy_link_name)

        # Credentials
        config.credentials.user_login = os.getenv('PHARMOUTCOMES_USER_LOGIN', config.credentials.user_login)
        config.credentials.password = os.getenv('PHARMOUTCOMES_PASSWORD', config.credentials.password)
        config.credentials.secret = os.getenv('PHARMOUTCOMES_SECRET', config.credentials.secret)

        # Run settings
        config.run.input_file = os.getenv('INPUT_FILE', config.run.input_file)
        config.run.output_dir = os.getenv('OUTPUT_DIR', config.run.output_dir)
        config.run.dry_run = self._get_env_bool('DRY_RUN', config.run.dry_run)
        config.run.pause_before_submit = self._get_env_bool('PAUSE_BEFORE_SUBMIT', config.run.pause_before_submit)

        return config

    def _apply_overrides(self, config: EntryAutomationConfig,
                         overrides: Dict[str, Dict[str, Any]]) -> EntryAutomationConfig:
        """Apply command line overrides on top of file and environment values"""
        for section_name, values in overrides.items():
            section = getattr(config, section_name, None)
            if section is None:
                self.logger.warning(f"Ignoring override for unknown section: {section_name}")
                continue
            for key, value in values.items():
                if value is None:
                    continue
                if not hasattr(section, key):
                    self.logger.warning(f"Ignoring unknown override: {section_name}.{key}")
                    continue
                setattr(section, key, value)
        return config

    def _validate_configuration(self, config: EntryAutomationConfig) -> None:
        """
        Validate configuration and raise errors for critical missing values
        """
        missing = []

        if not config.credentials.user_login:
            missing.append("PHARMOUTCOMES_USER_LOGIN")
        if not config.credentials.password:
            missing.append("PHARMOUTCOMES_PASSWORD")
        if not config.credentials.secret:
            missing.append("PHARMOUTCOMES_SECRET")
        if not config.run.input_file:
            missing.append("INPUT_FILE")
        if not config.run.output_dir:
            missing.append("OUTPUT_DIR")

        if missing:
            self.logger.error(f"Configuration validation failed, missing: {', '.join(missing)}")
            raise MissingConfigurationError(missing)

        self.logger.info("Configuration validation passed")

    def _apply_default_values(self, config: EntryAutomationConfig) -> EntryAutomationConfig:
        """
        Apply default values where configuration is missing or out of range
        """
        if config.automation_mode.timeout <= 0:
            config.automation_mode.timeout = 30000

        level = str(config.automation.log_level).upper()
        if level not in VALID_LOG_LEVELS:
            self.logger.warning(f"Invalid log level '{config.automation.log_level}', using INFO")
            level = "INFO"
        config.automation.log_level = level

        defaults = TimeoutConfig()
        for name in TimeoutConfig.__dataclass_fields__:
            if getattr(config.timeouts, name) < 0:
                self.logger.warning(f"Negative timeout '{name}', using default")
                setattr(config.timeouts, name, getattr(defaults, name))

        return config

    def _get_env_bool(self, key: str, default: bool) -> bool:
        """Get boolean value from environment variable"""
        value = os.getenv(key, str(default)).lower()
        return value in ('true', '1', 'yes', 'on')

    def _get_env_int(self, key: str, default: int) -> int:
        """Get integer value from environment variable"""
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            self.logger.warning(f"Invalid integer value for {key}, using default: {default}")
            return default

