import subprocess
from typing import Callable, List, Optional, Sequence

from loguru import logger
from pydantic import SecretStr

from catalog_audit.config.settings import settings
from catalog_audit.logging.setup import register_secret
from catalog_audit.models.credentials import Credentials

Runner = Callable[[Sequence[str]], subprocess.CompletedProcess]


class CredentialError(Exception):
    """Raised when the vault or a required credential field cannot be read."""

    pass


def run_cli(args: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        list(args), capture_output=True, text=True, check=False
    )


class OnePasswordProvider:
    """Reads Datadog credentials from a 1Password item through the ``op`` CLI."""

    def __init__(
        self,
        vault: Optional[str] = None,
        item: Optional[str] = None,
        *,
        cli: Optional[str] = None,
        default_site: Optional[str] = None,
        runner: Runner = run_cli,
    ):
        self.vault = vault or settings.op_vault
        self.item = item or settings.op_item
        self.cli = cli or settings.op_cli
        self.default_site = default_site or settings.default_site
        self.runner = runner

    def fetch(self) -> Credentials:
        """Resolves api_key, app_key and site.

        Raises:
            CredentialError: the vault is not accessible, or api_key/app_key
                cannot be read. A missing site falls back to the default.
        """
        logger.info(
            f"Retrieving credentials from 1Password vault: {self.vault}, item: {self.item}"
        )
        if not self._vault_accessible():
            raise CredentialError(f"Cannot access 1Password vault: {self.vault}")

        api_key = self._read_field("api_key")
        if api_key is None:
            raise CredentialError("Failed to retrieve api_key from 1Password")
        register_secret(api_key)

        app_key = self._read_field("app_key")
        if app_key is None:
            raise CredentialError("Failed to retrieve app_key from 1Password")
        register_secret(app_key)

        site = self._read_field("site")
        if site is None:
            logger.debug(f"No site field in {self.item}, using {self.default_site}")
            site = self.default_site

        return Credentials(api_key=SecretStr(api_key), app_key=SecretStr(app_key), site=site)

    def _vault_accessible(self) -> bool:
        result = self._run([self.cli, "vault", "get", self.vault])
        return result is not None and result.returncode == 0

    def _read_field(self, field: str) -> Optional[str]:
        result = self._run(
            [self.cli, "item", "get", self.item, "--vault", self.vault, "--field", field]
        )
        if result is None or result.returncode != 0:
            return None
        value = (result.stdout or "").strip()
        return value or None

    def _run(self, args: List[str]) -> Optional[subprocess.CompletedProcess]:
        try:
            return self.runner(args)
        except OSError as e:
            logger.debug(f"Could not run {args[0]}: {e}")
            return None
