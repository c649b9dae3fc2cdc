"""Project registry: document model, migration and stores.

The registry is a single JSON document holding projects and what belongs to
them. LocalRegistryStore reads and writes that file directly;
RemoteRegistryStore goes through the projax HTTP API. Both satisfy the
RegistryStore protocol.
"""

from projax.registry._io import read_json, write_json_atomic
from projax.registry._legacy import (
    LEGACY_DATABASE_NAME,
    LegacyImportReport,
    import_legacy_database,
)
from projax.registry._migrate import MigrationResult, normalize
from projax.registry._models import (
    COLLECTION_KEYS,
    SCHEMA_VERSION,
    UNSET,
    Document,
    JenkinsJob,
    Project,
    ProjectPort,
    ScanResult,
    Setting,
    Test,
    TestResult,
    Unset,
    record_to_dict,
)
from projax.registry._protocol import RegistryStore, ScanService
from projax.registry._remote import (
    DEFAULT_API_PORT,
    RemoteRegistryStore,
    read_api_port,
    write_api_port,
)
from projax.registry._store import LocalRegistryStore

__all__ = [
    "COLLECTION_KEYS",
    "DEFAULT_API_PORT",
    "LEGACY_DATABASE_NAME",
    "SCHEMA_VERSION",
    "UNSET",
    "Document",
    "JenkinsJob",
    "LegacyImportReport",
    "LocalRegistryStore",
    "MigrationResult",
    "Project",
    "ProjectPort",
    "RegistryStore",
    "RemoteRegistryStore",
    "ScanResult",
    "ScanService",
    "Setting",
    "Test",
    "TestResult",
    "Unset",
    "import_legacy_database",
    "normalize",
    "read_api_port",
    "read_json",
    "record_to_dict",
    "write_api_port",
    "write_json_atomic",
]
