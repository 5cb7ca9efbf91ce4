#!/usr/bin/env python3
"""MCP Server for Flame Planner.

This server exposes FIRE planning calculations as MCP tools,
allowing AI assistants to answer questions about a household's plan.
"""

import os
import sys
import json
import asyncio
import logging
from typing import Any

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from tools import MultiPlanTools

logger = logging.getLogger(__name__)


# Create the MCP server
server = Server("flame-planner")

# Global tools instance (initialized on startup)
tools: MultiPlanTools | None = None


def get_tools() -> MultiPlanTools:
    """Get or initialize the tools instance."""
    global tools
    if tools is None:
        # Default plan can be set via FLAME_PLANNER_PLAN env var
        default_plan = os.environ.get('FLAME_PLANNER_PLAN')
        base_path = os.path.join(os.path.dirname(__file__), '..')
        tools = MultiPlanTools(base_path, default_plan)
    return tools


# Common plan parameter schema
PLAN_PARAM = {
    "type": "string",
    "description": "The plan name (folder in input-parameters). If not specified, uses the default plan. Use list_plans to see available plans."
}


def _plan_only_schema() -> dict:
    return {
        "type": "object",
        "properties": {
            "plan": PLAN_PARAM
        },
        "required": []
    }


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available planning tools."""
    return [
        Tool(
            name="list_plans",
            description="List all available plans. Use this to see which plans are available and their basic info.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="reload_plans",
            description="Reload all plans from disk. Use this after adding, modifying, or removing plan config.json files to refresh the cache without restarting the server.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="get_plan_overview",
            description="Get an overview of the plan including ages, income, accounts, growth assumptions and FIRE goals. Use this first to understand the plan.",
            inputSchema=_plan_only_schema()
        ),
        Tool(
            name="get_cash_flow",
            description="Get this year's cash flow: gross income, taxes, pre-tax / Roth / after-tax 401(k), employer match, IRA, HSA, 529, brokerage, expenses and residual cash.",
            inputSchema=_plan_only_schema()
        ),
        Tool(
            name="get_budget_status",
            description="Get savings rate, tax rate and the signed remaining budget. Shows whether outflows exceed net pay (over-allocated) or leave less than 10% of gross income.",
            inputSchema=_plan_only_schema()
        ),
        Tool(
            name="get_projection",
            description="Get projected pre-tax, Roth, HSA and taxable balances, investable assets and net worth. Pass an age for a single year, or omit it for the full timeline through age 90.",
            inputSchema={
                "type": "object",
                "properties": {
                    "age": {
                        "type": "integer",
                        "description": "Optional: the age to get balances for"
                    },
                    "plan": PLAN_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_fire_target",
            description="Get the FIRE number (target spending / safe withdrawal rate) and the first age investable assets reach it.",
            inputSchema=_plan_only_schema()
        ),
        Tool(
            name="get_readiness",
            description="Get the FIRE readiness checklist: interest-bearing debt, emergency fund, employer match, 401(k) and Roth IRA limits, HSA and brokerage.",
            inputSchema=_plan_only_schema()
        ),
        Tool(
            name="compare_plans",
            description="Compare two plans and get analysis of which is better. Compares FIRE age, FIRE number, net worth at retirement and at 90, unfunded spending and savings rate. Returns a recommendation with specific insights.",
            inputSchema={
                "type": "object",
                "properties": {
                    "plan1": {
                        "type": "string",
                        "description": "First plan name to compare"
                    },
                    "plan2": {
                        "type": "string",
                        "description": "Second plan name to compare"
                    },
                    "metrics": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Optional: specific metrics to compare. Options: 'fire_age', 'fire_number', 'net_worth_at_retirement', 'investable_at_retirement', 'net_worth_at_end', 'shortfall', 'savings_rate'. If not specified, compares all metrics."
                    }
                },
                "required": ["plan1", "plan2"]
            }
        )
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        fp_tools = get_tools()
        plan = arguments.get("plan")

        if name == "list_plans":
            result = fp_tools.list_plans()
        elif name == "reload_plans":
            result = fp_tools.reload_plans()
        elif name == "get_plan_overview":
            result = fp_tools.get_plan_overview(plan)
        elif name == "get_cash_flow":
            result = fp_tools.get_cash_flow(plan)
        elif name == "get_budget_status":
            result = fp_tools.get_budget_status(plan)
        elif name == "get_projection":
            result = fp_tools.get_projection(arguments.get("age"), plan)
        elif name == "get_fire_target":
            result = fp_tools.get_fire_target(plan)
        elif name == "get_readiness":
            result = fp_tools.get_readiness(plan)
        elif name == "compare_plans":
            result = fp_tools.compare_plans(
                arguments["plan1"],
                arguments["plan2"],
                arguments.get("metrics")
            )
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(
            type="text",
            text=json.dumps(result, indent=2, default=str)
        )]
    except Exception as e:
        logger.debug("Tool %s failed", name, exc_info=True)
        return [TextContent(
            type="text",
            text=json.dumps({"error": str(e)}, indent=2)
        )]


async def main():
    """Run the MCP server."""
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
