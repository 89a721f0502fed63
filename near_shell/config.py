"""Network profiles and the explicit configuration value passed to every command.

Presets are chosen by `NEAR_ENV` and every field can be overridden by a CLI
flag or an environment variable. Resolution order (highest first):

  1. Command-line flags (--node-url, --wallet-url, ...)
  2. Environment variables (NEAR_NODE_URL, NEAR_WALLET_URL, ...)
  3. Network preset (testnet unless NEAR_ENV says otherwise)
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

DEFAULT_NETWORK = "testnet"
DEFAULT_KEY_STORE_DIR = "neardev"
DEFAULT_TIMEOUT = 30.0
DEFAULT_INITIAL_BALANCE = "0.1"

# Environment variables that mark an unattended run: ci-info's generic markers
# followed by the vendor-specific ones it recognises
CI_ENV_VARS = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "BUILD_ID",
    "BUILD_NUMBER",
    "CI_APP_ID",
    "CI_BUILD_ID",
    "CI_BUILD_NUMBER",
    "CI_NAME",
    "RUN_ID",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "JENKINS_URL",
    "TEAMCITY_VERSION",
    "TRAVIS",
    "CIRCLECI",
    "BUILDKITE",
    "APPVEYOR",
    "BITBUCKET_COMMIT",
    "CODEBUILD_BUILD_ARN",
    "DRONE",
    "SEMAPHORE",
    "TF_BUILD",
)
_DEBUG_VAR = "NEAR_DEBUG"

NETWORKS: Dict[str, Dict[str, Any]] = {
    "testnet": {
        "network_id": "testnet",
        "node_url": "https://rpc.testnet.near.org",
        "wallet_url": "https://wallet.testnet.near.org",
        "helper_url": "https://helper.testnet.near.org",
    },
    "mainnet": {
        "network_id": "mainnet",
        "node_url": "https://rpc.mainnet.near.org",
        "wallet_url": "https://wallet.near.org",
        "helper_url": "https://helper.mainnet.near.org",
    },
    "local": {
        "network_id": "local",
        "node_url": "http://localhost:3030",
        "wallet_url": "http://localhost:4000/wallet",
        "key_path": str(Path.home() / ".near" / "validator_key.json"),
    },
    "ci": {
        "network_id": "shared-test",
        "node_url": "https://rpc.ci-testnet.near.org",
        "master_account": "test.near",
    },
}
_ALIASES = {"development": "testnet", "production": "mainnet", "test": "ci"}

# field name -> environment override
_ENV_OVERRIDES = {
    "network_id": "NEAR_NETWORK_ID",
    "node_url": "NEAR_NODE_URL",
    "helper_url": "NEAR_HELPER_URL",
    "wallet_url": "NEAR_WALLET_URL",
    "key_path": "NEAR_KEY_PATH",
    "key_store_dir": "NEAR_KEY_STORE_DIR",
    "timeout": "NEAR_TIMEOUT",
}


@dataclass(frozen=True)
class ShellConfig:
    network_id: str
    node_url: str
    helper_url: Optional[str] = None
    wallet_url: Optional[str] = None
    key_path: Optional[str] = None
    key_store_dir: str = DEFAULT_KEY_STORE_DIR
    master_account: Optional[str] = None
    initial_balance: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = 3

    def with_overrides(self, **overrides: Any) -> "ShellConfig":
        """Copy with the given non-None fields replaced. Unknown keys raise TypeError."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def resolve_network(name: Optional[str]) -> str:
    key = (name or DEFAULT_NETWORK).strip().lower()
    key = _ALIASES.get(key, key)
    if key not in NETWORKS:
        raise ValueError(
            f"Unknown network {name!r}; expected one of {', '.join(sorted(NETWORKS))}"
        )
    return key


def load_config(
    network: Optional[str] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ShellConfig:
    """Build a ShellConfig from a preset, environment variables, then explicit overrides."""
    env = os.environ if env is None else env
    preset = dict(NETWORKS[resolve_network(network or env.get("NEAR_ENV"))])

    for name, var in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            preset[name] = float(value) if name == "timeout" else value

    preset.update({k: v for k, v in overrides.items() if v is not None})
    return ShellConfig(**preset)


def is_ci(env: Optional[Mapping[str, str]] = None) -> bool:
    """True when running on a CI server (no browser, no TTY assumptions)."""
    env = os.environ if env is None else env
    if env.get("CI", "").lower() == "false":
        return False
    return any(env.get(var) for var in CI_ENV_VARS)


def is_debug(env: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if env is None else env
    return bool(env.get(_DEBUG_VAR))


__all__ = [
    "ShellConfig",
    "NETWORKS",
    "DEFAULT_NETWORK",
    "DEFAULT_KEY_STORE_DIR",
    "DEFAULT_INITIAL_BALANCE",
    "load_config",
    "resolve_network",
    "is_ci",
    "CI_ENV_VARS",
    "is_debug",
]
