from keboola_provider.resources.access_token import AccessTokenResource, AccessTokenState
from keboola_provider.resources.base import Resource, ResourceState
from keboola_provider.resources.csv_import_extractor import CSVImportExtractorResource, CSVImportExtractorState
from keboola_provider.resources.database_writer import (
    DatabaseParameters,
    PostgreSQLWriterResource,
    PostgreSQLWriterState,
    PostgreSQLWriterTablesResource,
    SnowflakeWriterResource,
    SnowflakeWriterState,
    SnowflakeWriterTablesResource,
    WriterColumnState,
    WriterTableState,
    WriterTablesState,
)
from keboola_provider.resources.gooddata_writer import (
    GoodDataColumnState,
    GoodDataTableResource,
    GoodDataTableState,
    GoodDataWriterResource,
    GoodDataWriterState,
)
from keboola_provider.resources.orchestration import (
    NotificationState,
    OrchestrationResource,
    OrchestrationState,
    OrchestrationTaskState,
    OrchestrationTasksResource,
    OrchestrationTasksState,
)
from keboola_provider.resources.snowflake_extractor import (
    ExtractorTableState,
    SnowflakeExtractorResource,
    SnowflakeExtractorState,
    SnowflakeExtractorTablesResource,
    SnowflakeExtractorTablesState,
)
from keboola_provider.resources.storage_bucket import StorageBucketResource, StorageBucketState
from keboola_provider.resources.storage_table import StorageTableResource, StorageTableState
from keboola_provider.resources.transformation import (
    InputMappingState,
    OutputMappingState,
    TransformationBucketResource,
    TransformationBucketState,
    TransformationResource,
    TransformationState,
)

RESOURCE_TYPES: tuple[type[Resource], ...] = (
    StorageBucketResource,
    StorageTableResource,
    AccessTokenResource,
    TransformationBucketResource,
    TransformationResource,
    OrchestrationResource,
    OrchestrationTasksResource,
    SnowflakeWriterResource,
    SnowflakeWriterTablesResource,
    PostgreSQLWriterResource,
    PostgreSQLWriterTablesResource,
    CSVImportExtractorResource,
    SnowflakeExtractorResource,
    SnowflakeExtractorTablesResource,
    GoodDataWriterResource,
    GoodDataTableResource,
)

__all__ = [
    "RESOURCE_TYPES",
    "Resource",
    "ResourceState",
    "AccessTokenResource",
    "AccessTokenState",
    "CSVImportExtractorResource",
    "CSVImportExtractorState",
    "DatabaseParameters",
    "ExtractorTableState",
    "GoodDataColumnState",
    "GoodDataTableResource",
    "GoodDataTableState",
    "GoodDataWriterResource",
    "GoodDataWriterState",
    "InputMappingState",
    "NotificationState",
    "OrchestrationResource",
    "OrchestrationState",
    "OrchestrationTaskState",
    "OrchestrationTasksResource",
    "OrchestrationTasksState",
    "OutputMappingState",
    "PostgreSQLWriterResource",
    "PostgreSQLWriterState",
    "PostgreSQLWriterTablesResource",
    "SnowflakeExtractorResource",
    "SnowflakeExtractorState",
    "SnowflakeExtractorTablesResource",
    "SnowflakeExtractorTablesState",
    "SnowflakeWriterResource",
    "SnowflakeWriterState",
    "SnowflakeWriterTablesResource",
    "StorageBucketResource",
    "StorageBucketState",
    "StorageTableResource",
    "StorageTableState",
    "TransformationBucketResource",
    "TransformationBucketState",
    "TransformationResource",
    "TransformationState",
    "WriterColumnState",
    "WriterTableState",
    "WriterTablesState",
]
