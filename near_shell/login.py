"""
Browser-wallet login.

Flow
----
    Start → KeyGenerated → URLDispatched → AwaitingUserInput → Verifying
          → Persisted | Rejected | ErrorReported

1. Generate an ed25519 key pair locally; only the public half leaves the machine.
2. Build ``{wallet_url}/login/?title=NEAR+Shell&public_key=<key>``.
3. Print the URL (CI or NEAR_DEBUG) or open it in the default browser.
4. Ask which account the user just authorized (blocks for one line).
5. Fetch that account's access keys. Only if the new public key is among
   them is the key pair written to the unencrypted file key store.
6. The prompt is released on every path.

Verification errors are reported, never raised: the command exits cleanly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ContextManager, Mapping, Optional, Protocol
from urllib.parse import urlencode

import typer

from .config import ShellConfig, is_ci, is_debug
from .connection import Near, connect
from .errors import AccountDoesNotExist, InvalidAccountId
from .key_pair import KeyPair
from .keystore import KeyStore, UnencryptedFileSystemKeyStore
from .prompt import TerminalPrompt

log = logging.getLogger("near_shell.login")

AUTH_TITLE = "NEAR Shell"
FINGERPRINT_CHARS = 14


class Prompt(Protocol):
    def ask(self, text: str) -> str: ...


class LoginStatus(str, Enum):
    NOT_NEEDED = "not_needed"
    PERSISTED = "persisted"
    REJECTED = "rejected"
    ERROR = "error"


@dataclass(frozen=True)
class LoginResult:
    status: LoginStatus
    account_id: Optional[str] = None
    public_key: Optional[str] = None
    error: Optional[BaseException] = None


def build_login_url(wallet_url: str, public_key: str) -> str:
    query = urlencode({"title": AUTH_TITLE, "public_key": public_key})
    return f"{wallet_url.rstrip('/')}/login/?{query}"


def short_key(public_key: str) -> str:
    """Readable fingerprint: the first 14 characters plus an ellipsis."""
    return f"{public_key[:FINGERPRINT_CHARS]}..."


def should_print_url(env: Optional[Mapping[str, str]] = None) -> bool:
    return is_ci(env) or is_debug(env)


def _bold(text: str, **style: Any) -> str:
    return typer.style(text, bold=True, **style)


class LoginHandshake:
    """
    Coordinates one login attempt. Collaborators are injectable so the flow
    can run without a browser, a terminal or the network.
    """

    def __init__(
        self,
        config: ShellConfig,
        *,
        connect: Callable[[ShellConfig], Near] = connect,
        key_store: Optional[KeyStore] = None,
        key_pair_factory: Callable[[], KeyPair] = KeyPair.from_random,
        prompt_factory: Callable[[], ContextManager[Prompt]] = TerminalPrompt,
        open_url: Callable[[str], Any] = typer.launch,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.config = config
        self._connect = connect
        self.key_store = key_store if key_store is not None else UnencryptedFileSystemKeyStore(config.key_store_dir)
        self._key_pair_factory = key_pair_factory
        self._prompt_factory = prompt_factory
        self._open_url = open_url
        self._env = os.environ if env is None else env

    def run(self) -> LoginResult:
        if not self.config.wallet_url:
            typer.echo(
                "Log in is not needed on this environment. "
                "Please use appropriate master account for shell operations."
            )
            return LoginResult(LoginStatus.NOT_NEEDED)

        key_pair = self._key_pair_factory()
        public_key = key_pair.public_key.to_string()
        url = build_login_url(self.config.wallet_url, public_key)
        log.debug("login key %s generated", short_key(public_key))

        typer.echo(
            f"\n(Step 1) {_bold('Please authorize NEAR Shell', fg=typer.colors.YELLOW)} "
            "on at least one of your accounts then come back."
        )
        self._dispatch(url)

        with self._prompt_factory() as prompt:
            account_id = prompt.ask(
                "(Step 2) Which account did you just authorize for use with NEAR Shell?  "
                f"{_bold('Enter it here:')} "
            )
            return self._verify(account_id, key_pair)

    def _dispatch(self, url: str) -> None:
        if should_print_url(self._env):
            typer.echo(url)
        else:
            self._open_url(url)

    def _verify(self, account_id: str, key_pair: KeyPair) -> LoginResult:
        public_key = key_pair.public_key.to_string()
        near: Optional[Near] = None
        try:
            near = self._connect(self.config)
            account = near.account(account_id)
            keys = account.get_access_keys()
            if not any(k.get("public_key") == public_key for k in keys):
                typer.echo(
                    f"The account you provided has not {_bold('authorized the expected key', fg=typer.colors.RED)} "
                    f"[ {_bold(short_key(public_key))} ] Please try again.\n"
                )
                return LoginResult(LoginStatus.REJECTED, account_id, public_key)

            self.key_store.set_key(self.config.network_id, account_id, key_pair)
            log.info("stored login key for %s on %s", account_id, self.config.network_id)
            typer.echo(
                f"Logged in as [ {_bold(account_id)} ] with public key "
                f"[ {_bold(short_key(public_key))} ] successfully\n"
            )
            return LoginResult(LoginStatus.PERSISTED, account_id, public_key)
        except InvalidAccountId as e:
            typer.echo(
                f"\n{_bold('You need to provide a valid account ID to login', fg=typer.colors.RED)}. "
                "Please try logging in again.\n"
            )
            return LoginResult(LoginStatus.ERROR, account_id, public_key, e)
        except AccountDoesNotExist as e:
            typer.echo(
                f"\n{_bold('The account you provided does not exist', fg=typer.colors.RED)} on the current network "
                f"({_bold(account_id)} not found on {_bold(self.config.node_url)})\n"
            )
            return LoginResult(LoginStatus.ERROR, account_id, public_key, e)
        except Exception as e:
            log.debug("login verification failed", exc_info=True)
            typer.echo(str(e))
            return LoginResult(LoginStatus.ERROR, account_id, public_key, e)
        finally:
            if near is not None:
                near.close()


def login(config: ShellConfig, **kwargs: Any) -> LoginResult:
    return LoginHandshake(config, **kwargs).run()


__all__ = [
    "AUTH_TITLE",
    "LoginHandshake",
    "LoginResult",
    "LoginStatus",
    "build_login_url",
    "login",
    "short_key",
    "should_print_url",
]
