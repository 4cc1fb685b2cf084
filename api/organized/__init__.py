"""
Organized files module - flat PARA records.

Each record describes one file or directory that a user organized into a
PARA bucket, with at most a shallow explicit subfolder. The folder browsing
and restructuring features read and rewrite these records.
"""
