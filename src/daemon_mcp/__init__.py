"""
Daemon profile exposed as Model Context Protocol (MCP) tools.

A stateless JSON-RPC 2.0 handler that fetches a sectioned plain-text profile
document on every call and serves its sections through tools/list and
tools/call.
"""
