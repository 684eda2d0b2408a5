"""Routing: compiled route table with O(path-depth) matching.

Routes are collected during assembly and compiled into an immutable
lookup structure before the first request is served.
"""
