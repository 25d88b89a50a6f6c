"""Perforce adapter driving the p4 command line client."""

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from crashsync.config.models import SourceControlConfig
from crashsync.core.errors import SourceControlError


logger = logging.getLogger(__name__)

# p4 message severities (E_EMPTY, E_INFO, E_WARN, E_FAILED, E_FATAL)
SEVERITY_FAILED = 3

# Messages p4 reports when a pattern simply matches nothing
NOT_FOUND_MARKERS = (
    "no such file",
    "not in label",
    "not in client view",
    "no file(s) at that",
    "file(s) not on client",
)

# Revisions whose head action removed the file
DELETED_ACTIONS = frozenset({"delete", "move/delete", "purge", "archive"})


class PerforceError(SourceControlError):
    """Error running a p4 command."""


@dataclass
class P4CommandResult:
    """Parsed output of one p4 invocation."""

    command: list[str]
    returncode: int
    records: list[dict[str, Any]] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def not_found(self) -> bool:
        text = " ".join(self.messages + self.errors).lower()
        return any(marker in text for marker in NOT_FOUND_MARKERS)

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.errors


class PerforceRevision:
    """A file revision reported by ``p4 files``."""

    def __init__(
        self, provider: "PerforceProvider", depot_file: str, revision: int
    ) -> None:
        self._provider = provider
        self._depot_file = depot_file
        self._revision = revision

    @property
    def filename(self) -> str:
        return self._depot_file

    @property
    def revision(self) -> int:
        return self._revision

    def get(self, dest_path: Path) -> bool:
        """Print this revision into ``dest_path``."""
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            result = self._provider.run(
                [
                    "print",
                    "-q",
                    "-o",
                    str(dest_path),
                    f"{self._depot_file}#{self._revision}",
                ]
            )
        except (PerforceError, OSError) as e:
            logger.warning("Failed to get %s: %s", self, e)
            return False

        if not result.ok or not dest_path.is_file():
            logger.warning(
                "Failed to get %s: %s", self, "; ".join(result.errors) or "no output"
            )
            return False
        return True

    def __repr__(self) -> str:
        return f"{self._depot_file}#{self._revision}"


class PerforceLabel:
    """A Perforce label."""

    def __init__(self, provider: "PerforceProvider", name: str) -> None:
        self._provider = provider
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def sync(self, path_pattern: str) -> bool:
        """Sync ``path_pattern`` at this label into the client workspace."""
        try:
            result = self._provider.run(["sync", f"{path_pattern}@{self._name}"])
        except PerforceError as e:
            logger.warning("Sync of %s@%s failed: %s", path_pattern, self._name, e)
            return False

        if result.not_found:
            logger.debug("Nothing to sync for %s@%s", path_pattern, self._name)
            return False
        if not result.ok:
            logger.warning(
                "Sync of %s@%s failed: %s",
                path_pattern,
                self._name,
                "; ".join(result.errors),
            )
            return False
        return True

    def get_file_revisions(self, path_pattern: str) -> list[PerforceRevision]:
        """List revisions matching ``path_pattern`` at this label."""
        result = self._provider.run(["files", f"{path_pattern}@{self._name}"])
        if result.not_found:
            return []
        if not result.ok:
            raise PerforceError(
                f"p4 files {path_pattern}@{self._name} failed: "
                + "; ".join(result.errors)
            )

        revisions = []
        for record in result.records:
            depot_file = record.get("depotFile")
            if not depot_file or record.get("action") in DELETED_ACTIONS:
                continue
            revisions.append(
                PerforceRevision(self._provider, depot_file, int(record.get("rev", 0)))
            )
        return revisions

    def __repr__(self) -> str:
        return f"PerforceLabel({self._name!r})"


class PerforceProvider:
    """Source control provider backed by the p4 command line client.

    Commands run with ``-ztag -Mj`` so every output line is a JSON object.
    """

    def __init__(self, config: SourceControlConfig, timeout: float = 600.0) -> None:
        self.config = config
        self.timeout = timeout

    def _base_command(self) -> list[str]:
        cmd = [self.config.p4_executable, "-ztag", "-Mj"]
        if self.config.p4_port:
            cmd.extend(["-p", self.config.p4_port])
        if self.config.p4_user:
            cmd.extend(["-u", self.config.p4_user])
        if self.config.p4_client:
            cmd.extend(["-c", self.config.p4_client])
        return cmd

    def run(self, args: list[str]) -> P4CommandResult:
        """Run a p4 command and parse its tagged JSON output.

        Raises:
            PerforceError: If the p4 executable cannot be run
        """
        cmd = self._base_command() + args
        cmd_str = " ".join(cmd)
        logger.debug("Running: %s", cmd_str)

        try:
            proc = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout, check=False
            )
        except FileNotFoundError as e:
            raise PerforceError(
                f"p4 executable not found: {self.config.p4_executable}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise PerforceError(
                f"p4 command timed out after {self.timeout}s: {cmd_str}"
            ) from e

        result = P4CommandResult(command=cmd, returncode=proc.returncode)
        for line in proc.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                result.messages.append(line)
                continue
            if not isinstance(record, dict):
                continue
            if "severity" in record and "data" in record:
                message = str(record["data"]).strip()
                if int(record["severity"]) >= SEVERITY_FAILED:
                    result.errors.append(message)
                else:
                    result.messages.append(message)
            else:
                result.records.append(record)

        for line in proc.stderr.splitlines():
            line = line.strip()
            if line:
                result.errors.append(line)

        if result.returncode != 0 and not result.errors and not result.not_found:
            result.errors.append(f"exit code {result.returncode}")

        return result

    def is_available(self) -> bool:
        """Check if the Perforce server can be reached."""
        try:
            result = self.run(["info"])
        except PerforceError as e:
            logger.warning("Perforce is not available: %s", e)
            return False

        if not result.ok:
            logger.warning("Perforce is not available: %s", "; ".join(result.errors))
            return False

        server = next(
            (r.get("serverAddress") for r in result.records if "serverAddress" in r),
            None,
        )
        logger.debug("Perforce is available: %s", server or "unknown server")
        return True

    def get_labels(self, name: str) -> list[PerforceLabel]:
        """Find labels whose name matches ``name``."""
        result = self.run(["labels", "-e", name])
        if not result.ok:
            raise PerforceError(
                f"p4 labels -e {name} failed: " + "; ".join(result.errors)
            )
        return [
            PerforceLabel(self, record["label"])
            for record in result.records
            if record.get("label")
        ]


def create_source_control_provider(config: SourceControlConfig) -> PerforceProvider:
    """Factory function to create the configured source control provider."""
    if config.provider != "perforce":
        raise SourceControlError(f"Unsupported source control provider: {config.provider}")
    return PerforceProvider(config)
