# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Connection profile handed to the SSH layer, and the connection tester.

``ConnectionProfile`` is the only object in the code base that carries
plaintext secrets.  It is produced by
``SessionService.with_credentials_for_connection`` and consumed right away by
a tester (or the terminal transport); it is never serialised or logged.
"""

import io
import socket
from dataclasses import dataclass, field
from typing import Optional, Protocol

import paramiko

from core.logger import get_logger

log = get_logger("connection")

CONNECT_TIMEOUT = 10


@dataclass(frozen=True)
class ConnectionProfile:
    session_id: int
    name: str
    hostname: str
    port: int
    username: str
    password: Optional[str] = field(default=None, repr=False)
    private_key: Optional[str] = field(default=None, repr=False)
    key_passphrase: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class ConnectionTestResult:
    success: bool
    message: str


class ConnectionTester(Protocol):
    def test(self, profile: ConnectionProfile) -> ConnectionTestResult:
        ...


# Tried in order; DSA keys are no longer supported by current OpenSSH.
_KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


def load_private_key(pem: str, passphrase: Optional[str] = None) -> paramiko.PKey:
    """Parse an in-memory OpenSSH / PEM private key."""
    last_error: Optional[Exception] = None
    for key_cls in _KEY_CLASSES:
        try:
            return key_cls.from_private_key(io.StringIO(pem), password=passphrase or None)
        except paramiko.PasswordRequiredException:
            raise
        except (paramiko.SSHException, ValueError) as exc:
            last_error = exc
    raise paramiko.SSHException(f"Unsupported or malformed private key: {last_error}")


class ParamikoConnectionTester:
    """Opens and immediately closes an SSH connection."""

    def __init__(self, timeout: int = CONNECT_TIMEOUT):
        self.timeout = timeout

    def test(self, profile: ConnectionProfile) -> ConnectionTestResult:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        connect_kwargs = {
            "hostname": profile.hostname,
            "port": profile.port,
            "username": profile.username,
            "timeout": self.timeout,
            "banner_timeout": self.timeout,
            "auth_timeout": self.timeout,
            "allow_agent": False,
            "look_for_keys": False,
        }
        try:
            if profile.private_key:
                connect_kwargs["pkey"] = load_private_key(profile.private_key, profile.key_passphrase)
            if profile.password:
                connect_kwargs["password"] = profile.password
            client.connect(**connect_kwargs)
            return ConnectionTestResult(True, "Connection successful")
        except paramiko.AuthenticationException:
            return ConnectionTestResult(False, "Authentication failed")
        except paramiko.SSHException as exc:
            return ConnectionTestResult(False, f"SSH error: {exc}")
        except socket.timeout:
            return ConnectionTestResult(False, "Connection timed out")
        except OSError as exc:
            return ConnectionTestResult(False, f"Unable to reach the host: {exc}")
        finally:
            client.close()
            log.info(
                "Connection test for session %s to %s:%s finished",
                profile.session_id,
                profile.hostname,
                profile.port,
            )
