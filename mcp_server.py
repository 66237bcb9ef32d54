#!/usr/bin/env python3
"""
RibaLOT MCP Server - Machine Control Protocol interface.

Exposes LOT lookup, validation and export tools to MCP clients.

Tools:
  - query_lots: Search stored LOT records by catch date or species
  - validate_record: Validate a traceability record
  - export_lot: Render a stored LOT (csv, xml, xml_authorities, human_readable, json)
  - verify_lot: Re-validate a stored LOT and check its fingerprint
  - lookup_species: Search the Adriatic species catalog
  - daily_stats: LOT count and totals for one catch day
"""

import argparse
import json
import sys

from ribalot.core import StopRule
from ribalot.export import EXPORT_TARGETS
from ribalot.lot import daily_stats, export_lot, list_lots, verify_lot
from ribalot.reference import find_species
from ribalot.validation import validate_record


def tool_query_lots(catch_date: str | None = None, fao_code: str | None = None) -> list[dict]:
    """Query stored LOT records with optional filters."""
    return list_lots(catch_date=catch_date, fao_code=fao_code)


def tool_validate_record(record: dict, strict: bool = False) -> dict:
    """Validate a record without storing it."""
    return validate_record(record, strict=strict).to_dict()


def tool_export_lot(lot_id: str, format: str = "human_readable") -> str:
    return export_lot(lot_id, format)


def tool_verify_lot(lot_id: str, strict: bool = False) -> dict:
    return verify_lot(lot_id, strict=strict)


def tool_lookup_species(query: str = "") -> list[dict]:
    """Search species by FAO code, local or scientific name."""
    return [
        {
            "fao_code": s.fao_code,
            "scientific_name": s.scientific_name,
            "local_name": s.local_name,
            "category": s.category,
            "min_size_cm": s.min_size_cm,
        }
        for s in find_species(query)
    ]


def tool_daily_stats(catch_date: str) -> dict:
    return daily_stats(catch_date)


# MCP tool definitions
MCP_TOOLS = [
    {
        "name": "query_lots",
        "description": "Search stored LOT traceability records by catch date (DD/MM/YYYY) or FAO species code",
        "inputSchema": {
            "type": "object",
            "properties": {
                "catch_date": {
                    "type": "string",
                    "description": "Filter by catch date, DD/MM/YYYY",
                },
                "fao_code": {
                    "type": "string",
                    "description": "Filter by FAO 3-alpha species code",
                },
            },
        },
    },
    {
        "name": "validate_record",
        "description": "Validate a traceability record against the EU 2023/2842 mandatory-field rules. Returns all errors and advisory warnings.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "record": {
                    "type": "object",
                    "description": "Traceability record",
                },
                "strict": {
                    "type": "boolean",
                    "description": "Require product form, purpose/phase and destination",
                },
            },
            "required": ["record"],
        },
    },
    {
        "name": "export_lot",
        "description": "Render a stored LOT record in an export format",
        "inputSchema": {
            "type": "object",
            "properties": {
                "lot_id": {
                    "type": "string",
                    "description": "The LOT identifier",
                },
                "format": {
                    "type": "string",
                    "enum": list(EXPORT_TARGETS),
                    "description": "Export format",
                },
            },
            "required": ["lot_id"],
        },
    },
    {
        "name": "verify_lot",
        "description": "Re-validate a stored LOT record and check that its fingerprint matches its content",
        "inputSchema": {
            "type": "object",
            "properties": {
                "lot_id": {
                    "type": "string",
                    "description": "The LOT identifier",
                },
                "strict": {
                    "type": "boolean",
                    "description": "Require product form, purpose/phase and destination",
                },
            },
            "required": ["lot_id"],
        },
    },
    {
        "name": "lookup_species",
        "description": "Search the Croatian Adriatic species catalog by FAO code, local or scientific name",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Code or name fragment; empty lists everything",
                },
            },
        },
    },
    {
        "name": "daily_stats",
        "description": "Count the LOTs stored for one catch day and total their weight and pieces",
        "inputSchema": {
            "type": "object",
            "properties": {
                "catch_date": {
                    "type": "string",
                    "description": "Catch date, DD/MM/YYYY or YYYY-MM-DD",
                },
            },
            "required": ["catch_date"],
        },
    },
]


def handle_mcp_request(request: dict) -> dict:
    """Handle an MCP JSON-RPC request."""
    method = request.get("method", "")

    if method == "tools/list":
        return {"tools": MCP_TOOLS}

    elif method == "tools/call":
        params = request.get("params", {})
        tool_name = params.get("name", "")
        arguments = params.get("arguments", {})

        handlers = {
            "query_lots": tool_query_lots,
            "validate_record": tool_validate_record,
            "export_lot": tool_export_lot,
            "verify_lot": tool_verify_lot,
            "lookup_species": tool_lookup_species,
            "daily_stats": tool_daily_stats,
        }

        if tool_name not in handlers:
            return {"error": f"Unknown tool: {tool_name}"}

        try:
            result = handlers[tool_name](**arguments)
        except (TypeError, ValueError, StopRule) as e:
            return {"error": str(e)}

        if isinstance(result, str):
            text = result
        else:
            text = json.dumps(result, indent=2, ensure_ascii=False, default=str)
        return {"content": [{"type": "text", "text": text}]}

    return {"error": f"Unknown method: {method}"}


def health_check() -> bool:
    """Run MCP server health check."""
    assert len(MCP_TOOLS) == 6, f"Expected 6 tools, got {len(MCP_TOOLS)}"

    result = handle_mcp_request({"method": "tools/list"})
    assert "tools" in result
    assert len(result["tools"]) == 6

    result = handle_mcp_request({
        "method": "tools/call",
        "params": {"name": "lookup_species", "arguments": {"query": "BSS"}},
    })
    assert "content" in result

    print("MCP server health check: PASS")
    return True


def main():
    parser = argparse.ArgumentParser(description="RibaLOT MCP Server")
    parser.add_argument("--health-check", action="store_true", help="Run health check")
    parser.add_argument("--list-tools", action="store_true", help="List available tools")
    parser.add_argument("--stdio", action="store_true", help="Run in stdio mode (MCP protocol)")

    args = parser.parse_args()

    if args.health_check:
        success = health_check()
        sys.exit(0 if success else 1)

    elif args.list_tools:
        print(json.dumps(MCP_TOOLS, indent=2))

    elif args.stdio:
        # Read JSON-RPC requests from stdin
        for line in sys.stdin:
            line = line.strip()
            if not line:
                continue
            try:
                request = json.loads(line)
                response = handle_mcp_request(request)
                print(json.dumps(response, ensure_ascii=False, default=str))
                sys.stdout.flush()
            except json.JSONDecodeError:
                print(json.dumps({"error": "Invalid JSON"}))
                sys.stdout.flush()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
