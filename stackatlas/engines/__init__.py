"""
Feature engines built on the kernel: catalog browsing and input validation.
"""
