"""Mini README: Outbound exports of the dashboard aggregate.

The synchroniser watches the store and posts debounced ``sync_all`` payloads
to a spreadsheet webhook; the spreadsheet module writes the same records to a
local ``.xlsx`` workbook.
"""

from .config_storage import ConfigStorage, ExportConfig, JsonConfigStorage, MemoryConfigStorage
from .formatter import build_sync_payload, build_test_payload, stable_serialisation
from .spreadsheet import build_template_workbook, build_workbook, template_bytes, workbook_bytes, write_workbook
from .synchronizer import ExportSynchronizer, SyncStatus
from .transport import ExportTransport, TransmissionResult, WebhookTransport

__all__ = [
    "ConfigStorage",
    "ExportConfig",
    "ExportSynchronizer",
    "ExportTransport",
    "JsonConfigStorage",
    "MemoryConfigStorage",
    "SyncStatus",
    "TransmissionResult",
    "WebhookTransport",
    "build_sync_payload",
    "build_template_workbook",
    "build_test_payload",
    "build_workbook",
    "stable_serialisation",
    "template_bytes",
    "workbook_bytes",
    "write_workbook",
]
