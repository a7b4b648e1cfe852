"""Plain HTTP routes served next to the MCP transport."""
