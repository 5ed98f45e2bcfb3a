"""Filesystem, patch, process, git, JSON and validation helpers."""