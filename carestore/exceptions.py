"""Custom exception hierarchy for carestore.

Every message is meant to be shown to an operator as-is, so each error
carries the version, artifact or tool it is about.
"""


class CarestoreError(Exception):
    """Base for all carestore errors."""


class ConfigurationError(CarestoreError):
    """Invalid migration sequence, store URL or ledger state."""


class MigrationError(CarestoreError):
    """A migration script failed; the store stays at the previous version."""

    def __init__(self, version: int, cause: BaseException | str) -> None:
        self.version = version
        self.cause = cause
        super().__init__(f"Migration v{version} failed: {cause}")


class BackupError(CarestoreError):
    """Base for backup/restore failures."""


class ExternalToolUnavailable(BackupError):
    """The dump/load tool is not installed or not on PATH."""

    def __init__(self, tool: str, detail: str = "") -> None:
        self.tool = tool
        msg = f"External tool '{tool}' is not available"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ExportFailed(BackupError):
    """The dump process reported a failure."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Backup failed: {detail}")


class RestoreFailed(BackupError):
    """The load process reported a failure. The store may be half-restored."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Restore failed: {detail}")


class ArtifactNotFound(BackupError):
    """No backup artifact with the given name in the retention directory."""

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Backup file not found: {ref}")


class DocumentNotFound(CarestoreError):
    """No stored medical document at the given path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")


class StoreUnavailable(CarestoreError):
    """Could not open a connection to the relational store."""

    def __init__(self, store: str, detail: str) -> None:
        self.store = store
        super().__init__(f"Cannot connect to {store}: {detail}")
