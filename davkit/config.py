import json
import logging
import os
from typing import Any, Dict, Optional

"""
Connection settings for the WebDAV clients, read from parameters,
environment variables or a configuration file.

The configuration file is JSON (or YAML, if pyyaml is installed) with
one section per server:

    {"default": {"webdav_url": "https://dav.example.com/files/",
                 "webdav_user": "alice", "webdav_pass": "secret"},
     "work": {"inherits": "default", "webdav_url": "https://..."}}
"""

log = logging.getLogger(__name__)

ENV_PREFIX = "WEBDAV_"

## Keys understood by the clients, with the spellings accepted from
## environment and config file
_aliases = {
    "url": "url",
    "username": "username",
    "user": "username",
    "password": "password",
    "pass": "password",
    "timeout": "timeout",
    "ssl_verify_cert": "verify_ssl",
    "verify_ssl": "verify_ssl",
}


def config_section(config: Dict[str, Any], section: str = "default") -> Dict[str, Any]:
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    ret.pop("inherits", None)
    return ret


def read_config(fn: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Read a config file.  When no file name is given, the usual places
    are searched and the first file found is returned.

    A broken file is logged and ignored, an empty dict is returned.
    """
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config"
        for config_file in (
            f"{cfgdir}/davkit/webdav.conf",
            f"{cfgdir}/davkit/webdav.yaml",
            f"{cfgdir}/davkit/webdav.json",
            "/etc/davkit/webdav.conf",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return None

    try:
        try:
            with open(fn, "rb") as config_file:
                return _as_dict(json.load(config_file), fn)
        except json.decoder.JSONDecodeError:
            ## Late import, yaml is an optional dependency
            try:
                import yaml
            except ImportError:
                log.error(
                    f"config file {fn} exists but is not valid json, and pyyaml is not installed."
                )
                return {}
            try:
                with open(fn, "rb") as config_file:
                    return _as_dict(yaml.safe_load(config_file) or {}, fn)
            except yaml.YAMLError:
                log.error(
                    f"config file {fn} exists but is neither valid json nor yaml.  Check the syntax."
                )
    except FileNotFoundError:
        log.debug("no config file %s", fn)
    except ValueError:
        log.error("error in config file %s.  It will be ignored", fn, exc_info=True)
    return {}


def _as_dict(cfg: Any, fn: str) -> Dict[str, Any]:
    if not isinstance(cfg, dict):
        log.error(f"config file {fn} should contain a mapping of sections.  It will be ignored")
        return {}
    return cfg


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in ("0", "false", "no", "off", "")


def _normalize(raw: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    """Map prefixed keys to client parameters, dropping unknown and empty ones"""
    params: Dict[str, Any] = {}
    for key, value in raw.items():
        key = key.lower()
        if not key.startswith(prefix) or value in (None, ""):
            continue
        name = _aliases.get(key[len(prefix):])
        if name:
            params[name] = value
    if "timeout" in params:
        try:
            params["timeout"] = float(params["timeout"])
        except (TypeError, ValueError):
            log.error("ignoring invalid timeout %r", params.pop("timeout"))
    if "verify_ssl" in params:
        params["verify_ssl"] = _to_bool(params["verify_ssl"])
    return params


def get_connection_params(
    check_config_file: bool = True,
    config_file: Optional[str] = None,
    config_section_name: Optional[str] = None,
    environment: bool = True,
    **explicit: Any,
) -> Dict[str, Any]:
    """
    Find the connection parameters, trying in this order:

    * the parameters given
    * environment variables WEBDAV_URL, WEBDAV_USERNAME, WEBDAV_PASSWORD,
      WEBDAV_TIMEOUT and WEBDAV_SSL_VERIFY_CERT
    * the configuration file, from config_file, WEBDAV_CONFIG_FILE or the
      default locations; the section from config_section_name,
      WEBDAV_CONFIG_SECTION or "default"

    The first source that yields any parameter wins.  Returns an empty
    dict if nothing was found.
    """
    params = {k: v for k, v in explicit.items() if v is not None}
    if params:
        return _normalize(params, "")

    if environment:
        params = _normalize(
            {
                k: v
                for k, v in os.environ.items()
                if k.startswith(ENV_PREFIX) and not k.startswith(ENV_PREFIX + "CONFIG")
            },
            ENV_PREFIX.lower(),
        )
        if params:
            return params
        if not config_file:
            config_file = os.environ.get(ENV_PREFIX + "CONFIG_FILE")
        if not config_section_name:
            config_section_name = os.environ.get(ENV_PREFIX + "CONFIG_SECTION")

    if check_config_file:
        cfg = read_config(config_file)
        if cfg:
            section = config_section(cfg, config_section_name or "default")
            return _normalize(section, ENV_PREFIX.lower())
    return {}


def get_client(**kwargs: Any):
    """
    Build a SyncProtocolClient from get_connection_params.  Returns None
    if no URL could be found.
    """
    from davkit.protocol_client import SyncProtocolClient

    params = get_connection_params(**kwargs)
    if not params.get("url"):
        log.info("no WebDAV server configured")
        return None
    return SyncProtocolClient(base_url=params.pop("url"), **params)
