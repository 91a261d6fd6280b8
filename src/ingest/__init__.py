"""Installed-apps ingestion pipeline.

This module reads gzip input files and fans their lines out to
parser and uploader worker pools that write to cache shards.
"""
