import logging
import os
import shutil
import stat
import time
from collections import namedtuple

from errors import AppError

logger = logging.getLogger(__name__)

KB_IN_BYTES = 1024

TreeNode = namedtuple("TreeNode", ["name", "path", "is_file", "children"])


# Validation

def validate_dir_to_read(dir_path):
    """
    Makes sure the directory exists, is a directory (or a link to one)
    and can be opened for reading.
    """
    _validate_dir(dir_path, os.R_OK, "read")


def validate_dir_to_write(dir_path):
    """Same as validate_dir_to_read() but checks for write access."""
    _validate_dir(dir_path, os.W_OK, "write")


def _validate_dir(dir_path, mode, access):
    if dir_path is None:
        raise AppError("The directory is None")
    dir_path = os.fspath(dir_path).strip()
    if not os.path.exists(dir_path):
        raise AppError(f"'{dir_path}' does not exist")
    if not os.path.isdir(dir_path):
        raise AppError(f"'{dir_path}' is not a directory")
    if not os.access(dir_path, mode):
        raise AppError(f"Directory '{dir_path}' has no {access} access permissions")


def validate_file_to_read(file_path):
    """
    Makes sure the file exists, is a regular file (or a link to one) and
    can be opened for reading.
    """
    if file_path is None:
        raise AppError("The path for the file to read is None")
    file_path = os.fspath(file_path).strip()
    if not os.path.exists(file_path):
        raise AppError(f"'{file_path}' does not exist")
    if not os.path.isfile(file_path):
        raise AppError(f"'{file_path}' is not a regular file")
    if not os.access(file_path, os.R_OK):
        raise AppError(f"File '{file_path}' has no read access permissions")


def validate_file_to_write(file_path):
    """
    Makes sure that, if the file exists, it is a regular file that can be
    overwritten. A file that does not exist yet passes the check.
    """
    if file_path is None:
        raise AppError("The path for the file to write is None")
    file_path = os.fspath(file_path).strip()
    if not os.path.exists(file_path):
        return
    if not os.path.isfile(file_path):
        raise AppError(f"'{file_path}' is not a regular file")
    if not os.access(file_path, os.W_OK):
        raise AppError(f"File '{file_path}' has no write access permissions")


def extension_match(file_path, extensions):
    """
    Returns True if the file name ends with one of the given extensions.
    The comparison is case-insensitive.
    """
    if file_path is None or extensions is None:
        return False
    if isinstance(extensions, str):
        extensions = [extensions]
    name = os.path.basename(os.fspath(file_path)).lower()
    return any(name.endswith(ext.strip().lower()) for ext in extensions)


# Listing

def _scan(dir_path):
    try:
        with os.scandir(dir_path) as it:
            return sorted(it, key=lambda entry: entry.name)
    except PermissionError:
        raise AppError(f"Directory '{dir_path}' has no read access permissions")
    except OSError as e:
        raise AppError(f"Error listing directory '{dir_path}': {e}")


def list_dirs(dir_path):
    """Lists the child directories of the given directory (not any deeper)."""
    validate_dir_to_read(dir_path)
    return [entry.path for entry in _scan(dir_path) if entry.is_dir()]


def list_dirs_recursive(dir_path):
    """
    Lists all directories under the given one, any level deep.

    Returns a dict that maps every directory (the given one included) to
    the list of its child directories.
    """
    validate_dir_to_read(dir_path)
    dir_map = {}
    _list_dirs_recursive(os.fspath(dir_path), dir_map)
    return dir_map


def _list_dirs_recursive(dir_path, dir_map):
    if not os.access(dir_path, os.R_OK):
        raise AppError(f"Directory '{dir_path}' has no read access permissions")
    child_dirs = []
    for entry in _scan(dir_path):
        if entry.is_dir():
            _list_dirs_recursive(entry.path, dir_map)
            child_dirs.append(entry.path)
    dir_map[dir_path] = child_dirs


def list_files(dir_path, extensions=None):
    """
    Lists the regular files in the given directory (not any deeper).

    Args:
        dir_path: The directory to list
        extensions: A single extension or a list of extensions that a file
            must end with to be listed, or None to list every file
    """
    validate_dir_to_read(dir_path)
    files = []
    for entry in _scan(dir_path):
        if not entry.is_file():
            continue
        if extensions is None or extension_match(entry.name, extensions):
            files.append(entry.path)
    return files


def list_files_recursive(dir_path, extensions=None, max_size_kb=None, max_age=None):
    """
    Lists the regular files under the given directory, any level deep.

    Returns a dict that maps every directory to the list of its child files
    that:
      1) end with one of the extensions (if given)
      2) are not larger than max_size_kb kilobytes (if given)
      3) were last modified at most max_age seconds ago (if given)
    Directories with no such files map to an empty list.
    """
    validate_dir_to_read(dir_path)
    max_length = None if max_size_kb is None else max_size_kb * KB_IN_BYTES
    file_map = {}
    _list_files_recursive(os.fspath(dir_path), file_map, extensions, max_length, max_age)
    return file_map


def _list_files_recursive(dir_path, file_map, extensions, max_length, max_age):
    if not os.access(dir_path, os.R_OK):
        raise AppError(f"Directory '{dir_path}' has no read access permissions")
    now = time.time()
    child_files = []
    for entry in _scan(dir_path):
        if entry.is_dir():
            _list_files_recursive(entry.path, file_map, extensions, max_length, max_age)
        elif entry.is_file():
            info = entry.stat()
            if max_age is not None and now - info.st_mtime > max_age:
                continue
            if max_length is not None and info.st_size > max_length:
                continue
            if extensions is None or extension_match(entry.name, extensions):
                child_files.append(entry.path)
    file_map[dir_path] = child_files


def scan_tree(dir_path, extensions=None, include=None):
    """
    Builds the TreeNode hierarchy under the given directory: in each
    directory, the subdirectories come first and then the files, each group
    sorted by name. Subdirectories are always kept; a file is kept if its
    name ends with one of the extensions (case-sensitive) and, when an
    include set is given, it is in that set.
    """
    validate_dir_to_read(dir_path)
    dir_path = os.fspath(dir_path)
    if include is not None:
        include = {os.path.normpath(os.fspath(path)) for path in include}
    if isinstance(extensions, str):
        extensions = [extensions]
    return _scan_tree(dir_path, extensions, include, set())


def _scan_tree(dir_path, extensions, include, visited):
    visited.add(os.path.realpath(dir_path))
    subdirs = []
    files = []
    for entry in _scan(dir_path):
        if entry.is_dir():
            # A link back to a directory already in the tree would never end
            if os.path.realpath(entry.path) in visited:
                logger.debug(f"Skipping '{entry.path}': already scanned")
                continue
            subdirs.append(_scan_tree(entry.path, extensions, include, visited))
        elif entry.is_file():
            if include is not None and os.path.normpath(entry.path) not in include:
                continue
            if extensions is not None and not any(entry.name.endswith(ext) for ext in extensions):
                continue
            files.append(TreeNode(entry.name, entry.path, True, []))
    return TreeNode(os.path.basename(dir_path.rstrip(os.sep)) or dir_path, dir_path, False, subdirs + files)


def list_files_any_level_deep(dir_path, extensions=None):
    """Lists all regular files under the given directory as a flat list."""
    file_map = list_files_recursive(dir_path, extensions)
    all_files = []
    for dir_files in file_map.values():
        all_files.extend(dir_files)
    return sorted(all_files)


# Mutation

def create_dir(dir_path, create_parents=False):
    """
    Creates the directory. Does nothing if it already exists.
    Without create_parents, the parent directory must already exist.
    """
    if dir_path is None:
        raise AppError("The directory to create is None")
    dir_path = os.fspath(dir_path)
    if os.path.exists(dir_path):
        if os.path.isdir(dir_path):
            return
        raise AppError(f"'{dir_path}' is not a directory")
    try:
        if create_parents:
            os.makedirs(dir_path)
        else:
            os.mkdir(dir_path)
    except OSError as e:
        raise AppError(f"Failed to create directory '{dir_path}': {e}")


def rename_dir_contents(dir_path, from_prefix, to_prefix, case_sensitive=True,
                        rename_dirs=True, rename_files=True):
    """
    Renames the files and/or directories right under dir_path whose name
    starts with from_prefix so that they start with to_prefix instead.
    """
    if not rename_dirs and not rename_files:
        return
    validate_dir_to_write(dir_path)
    prefix = from_prefix if case_sensitive else from_prefix.lower()
    for entry in _scan(dir_path):
        name = entry.name if case_sensitive else entry.name.lower()
        if not name.startswith(prefix):
            continue
        if entry.is_dir() and not rename_dirs:
            continue
        if not entry.is_dir() and not rename_files:
            continue
        new_name = to_prefix + entry.name[len(from_prefix):]
        try:
            os.rename(entry.path, os.path.join(os.fspath(dir_path), new_name))
        except OSError as e:
            raise AppError(f"Error while renaming '{entry.path}': {e}")


def remove_dir(dir_path, follow_links=False):
    """
    Removes a directory and all its contents.
    Symbolic links are removed, but their targets are left alone unless
    follow_links is True. A directory that does not exist is not an error.
    """
    if dir_path is None:
        raise AppError("The directory to remove is None")
    dir_path = os.fspath(dir_path)
    if not os.path.lexists(dir_path):
        return
    validate_dir_to_write(dir_path)
    try:
        if follow_links:
            _remove_following_links(dir_path)
        else:
            shutil.rmtree(dir_path)
    except OSError as e:
        raise AppError(f"Error deleting directory '{os.path.abspath(dir_path)}': {e}")


def _remove_following_links(dir_path):
    for entry in _scan(dir_path):
        if entry.is_symlink():
            target = os.path.realpath(entry.path)
            os.remove(entry.path)
            if os.path.isdir(target):
                shutil.rmtree(target)
            elif os.path.exists(target):
                os.remove(target)
        elif entry.is_dir():
            _remove_following_links(entry.path)
        else:
            os.remove(entry.path)
    os.rmdir(dir_path)


def clean_dir(dir_path):
    """Removes everything inside the directory but keeps the directory."""
    validate_dir_to_write(dir_path)
    for entry in _scan(dir_path):
        try:
            if entry.is_dir(follow_symlinks=False):
                shutil.rmtree(entry.path)
            else:
                os.remove(entry.path)
        except OSError as e:
            raise AppError(f"Error removing '{entry.path}': {e}")


def copy_dir(src_dir, dest_dir, extensions=None, replace_existing=True):
    """
    Copies the directory structure under src_dir to dest_dir along with the
    files that match the given extensions (all files if None).
    """
    validate_dir_to_read(src_dir)
    src_dir = os.fspath(src_dir)
    dest_dir = os.fspath(dest_dir)
    for root, dirs, files in os.walk(src_dir):
        dirs.sort()
        target_root = os.path.join(dest_dir, os.path.relpath(root, src_dir))
        create_dir(target_root, create_parents=True)
        for name in sorted(files):
            if extensions is not None and not extension_match(name, extensions):
                continue
            copy_file(os.path.join(root, name), os.path.join(target_root, name),
                      replace_existing=replace_existing)


def copy_file(src_path, dest_path, replace_existing=True):
    validate_file_to_read(src_path)
    validate_file_to_write(dest_path)
    if not replace_existing and os.path.exists(dest_path):
        raise AppError(f"'{dest_path}' already exists")
    try:
        shutil.copy2(src_path, dest_path)
    except OSError as e:
        raise AppError(f"Error while copying '{src_path}' to '{dest_path}': {e}")


def move_file(src_path, dest_path):
    validate_file_to_read(src_path)
    validate_file_to_write(dest_path)
    if os.fspath(src_path).lower() == os.fspath(dest_path).lower():
        return
    try:
        shutil.move(src_path, dest_path)
    except OSError as e:
        raise AppError(f"Error while moving '{src_path}' to '{dest_path}': {e}")


def get_attributes(file_path):
    """Returns the os.stat_result of a readable regular file."""
    validate_file_to_read(file_path)
    try:
        return os.stat(file_path)
    except OSError as e:
        raise AppError(f"Error retrieving the attributes of '{file_path}': {e}")


def find_binary_on_env_var(env_var, binary_name, subpath=None):
    """
    Looks for an executable in the directories listed in an environment
    variable, e.g. ("PATH", "tesseract") or ("TESSERACT_HOME", "tesseract", "bin").
    Returns the full path name or None.
    """
    value = os.environ.get(env_var)
    if not value:
        return None
    candidates = [binary_name]
    if os.name == "nt" and not binary_name.lower().endswith(".exe"):
        candidates.append(binary_name + ".exe")
    for location in value.split(os.pathsep):
        if not location:
            continue
        if subpath:
            location = os.path.join(location, subpath)
        for candidate in candidates:
            path = os.path.join(location, candidate)
            if os.path.isfile(path) and os.stat(path).st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH):
                return path
    logger.debug(f"{binary_name} not found on {env_var}")
    return None
