"""Core components for Control Tower landing zone assembly.

This module contains the foundational components including the resource
graph, provisioning request, configuration handling, validation, and AWS
session management.
"""
