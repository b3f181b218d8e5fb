"""
Node JSON-RPC interface used to feed the block cache.
"""
import json


class NodeRPCError(RuntimeError):
    """The node answered with an error member."""


async def _call(session, node_url: str, method: str, params: list):
    data = {
        "jsonrpc": "1.0",
        "id": "explorer",
        "method": method,
        "params": params,
    }
    async with session.post(node_url, data=json.dumps(data)) as resp:
        js = await resp.json()
    if js.get("error"):
        raise NodeRPCError(f"{method}: {js['error']}")
    return js["result"]


async def getblockchaininfo(session, node_url: str):
    """Get blockchain info including chain tip."""
    return await _call(session, node_url, "getblockchaininfo", [])


async def getblockhash(session, node_url: str, height: int):
    """Get the hash of the block at `height` on the active chain."""
    return await _call(session, node_url, "getblockhash", [height])


async def getblockheader(session, node_url: str, block_hash: str):
    """Get the verbose header (bits, time, height) of a block."""
    return await _call(session, node_url, "getblockheader", [block_hash, True])
