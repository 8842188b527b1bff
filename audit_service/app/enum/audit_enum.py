from enum import Enum


class AuditResult(str, Enum):
    MATCH = "Match"
    EXCESS = "Excess"
    SHORTFALL = "Shortfall"


class EntryStatus(str, Enum):
    AUTO_APPROVED = "auto-approved"
    PENDING_CLIENT = "pending-client"
    CLIENT_APPROVED = "client-approved"
    CLIENT_REJECTED = "client-rejected"

    @classmethod
    def parse(cls, value: str) -> "EntryStatus":
        # "recount-required" was an earlier name for a rejected entry
        if value == "recount-required":
            return cls.CLIENT_REJECTED
        return cls(value)

    @property
    def is_terminal(self) -> bool:
        return self != EntryStatus.PENDING_CLIENT


class ClientAction(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class EntryKind(str, Enum):
    SKU = "sku"
    BIN = "bin"


class UploadType(str, Enum):
    INVENTORY = "inventory"
    STAFF = "staff"
    CLIENT = "client"


class ExportType(str, Enum):
    AUDIT_REPORT = "audit-report"
    INVENTORY = "inventory"
    STAFF = "staff"
    CLIENT = "client"
