from .cloner import clone_directory, copy_file, copy_symlink, create_if_not_exists, exists
from .backup_manager import BackupManager, default_backup_path
from .integrity_checker import IntegrityChecker, IntegrityCheckResult
from .segment_inspector import classify_open_error, extract_offending_path, is_all_zeros
from .logging import setup_logging

__all__ = [
    'clone_directory',
    'copy_file',
    'copy_symlink',
    'create_if_not_exists',
    'exists',
    'BackupManager',
    'default_backup_path',
    'IntegrityChecker',
    'IntegrityCheckResult',
    'classify_open_error',
    'extract_offending_path',
    'is_all_zeros',
    'setup_logging',
]
