# services/__init__.py
# Version 02.00.00.00 dated 20261019
# Service layer package - Business logic separated from UI and data access

from .identity_service import (
    IdentityService,
    get_identity_service,
    generate_fingerprint,
    collect_host_traits
)

from .folder_alignment_service import (
    PLACEHOLDER,
    AlignmentRow,
    AlignmentResult,
    FolderNode,
    is_compare_mode,
    align_folders,
    display_sequence,
    filter_by_folders,
    build_folder_tree,
    flatten_folder_tree,
    select_range
)

from .directory_picker import (
    DirectoryPicker,
    QtDirectoryPicker,
    StaticDirectoryPicker
)

from .import_service import (
    PhotoImportService,
    ImportResult,
    LocalDirectorySource,
    DroppedItemsSource,
    IMAGE_EXTENSIONS,
    is_image_file
)

from .export_service import (
    PhotoExportService,
    ExportResult,
    LocalDirectorySink,
    EXPORT_FOLDER_NAMES
)

from .display_surrogate_service import (
    DisplaySurrogate,
    DisplaySurrogateService
)

from .photo_session_service import PhotoSessionService

from .catalog_qt_bridge import CatalogSignalBridge

__all__ = [
    # Identity
    'IdentityService',
    'get_identity_service',
    'generate_fingerprint',
    'collect_host_traits',

    # Alignment
    'PLACEHOLDER',
    'AlignmentRow',
    'AlignmentResult',
    'FolderNode',
    'is_compare_mode',
    'align_folders',
    'display_sequence',
    'filter_by_folders',
    'build_folder_tree',
    'flatten_folder_tree',
    'select_range',

    # Pickers
    'DirectoryPicker',
    'QtDirectoryPicker',
    'StaticDirectoryPicker',

    # Import / export
    'PhotoImportService',
    'ImportResult',
    'LocalDirectorySource',
    'DroppedItemsSource',
    'IMAGE_EXTENSIONS',
    'is_image_file',
    'PhotoExportService',
    'ExportResult',
    'LocalDirectorySink',
    'EXPORT_FOLDER_NAMES',

    # Display
    'DisplaySurrogate',
    'DisplaySurrogateService',

    # Session
    'PhotoSessionService',

    # Qt
    'CatalogSignalBridge',
]
