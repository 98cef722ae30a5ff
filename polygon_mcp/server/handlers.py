"""
Tool handlers

Each handler takes the shared ToolContext and the raw argument object and
returns a JSON-serializable result. Handlers are synchronous; the MCP app
runs them in worker threads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..config import config
from ..errors import InvalidArgument, ToolNotFound
from ..infra.evm_signer import EVMSigner
from ..infra.chain_client import ChainClient
from ..protocols.oneinch import QuoteResolver
from ..modules.allowance import AllowanceManager
from ..modules.contracts import ContractModule, parse_wei
from ..modules.swap import SwapOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class ToolContext:
    """Collaborators shared by all tool invocations of one server process"""
    chain: ChainClient
    contracts: ContractModule
    allowance: AllowanceManager
    swap: SwapOrchestrator

    @classmethod
    def build(cls, chain: ChainClient, resolver: QuoteResolver) -> "ToolContext":
        allowance = AllowanceManager.from_config(chain)
        return cls(
            chain=chain,
            contracts=ContractModule(chain),
            allowance=allowance,
            swap=SwapOrchestrator(chain, resolver, allowance_manager=allowance),
        )

    @classmethod
    def from_config(cls) -> "ToolContext":
        """
        Load the signer from SEED_PHRASE / EVM_PRIVATE_KEY and connect to POLYGON_RPC_URL

        Raises:
            SignerError: If no wallet secret is configured
        """
        signer = EVMSigner.from_config(config.wallet)
        chain = ChainClient.from_config(signer)
        resolver = QuoteResolver.from_config(chain.chain_id)
        return cls.build(chain, resolver)


def _require(arguments: Dict[str, Any], key: str) -> Any:
    value = arguments.get(key)
    if value is None or value == "":
        raise InvalidArgument(key, "is required")
    return value


def handle_get_address(ctx: ToolContext, arguments: Dict[str, Any]) -> str:
    return ctx.contracts.get_address()


def handle_get_gas_price(ctx: ToolContext, arguments: Dict[str, Any]) -> str:
    return ctx.contracts.get_gas_price()


def handle_call_contract(ctx: ToolContext, arguments: Dict[str, Any]) -> Any:
    function_args = arguments.get("functionArgs") or []
    if not isinstance(function_args, list):
        raise InvalidArgument("functionArgs", "must be an array")
    return ctx.contracts.call_contract(
        _require(arguments, "contractAddress"),
        _require(arguments, "functionName"),
        _require(arguments, "abi"),
        function_args=function_args,
        value=arguments.get("value"),
    )


def handle_erc20_balance(ctx: ToolContext, arguments: Dict[str, Any]) -> str:
    return ctx.contracts.erc20_balance(_require(arguments, "contractAddress"))


def handle_erc20_transfer(ctx: ToolContext, arguments: Dict[str, Any]) -> Dict[str, str]:
    return ctx.contracts.erc20_transfer(
        _require(arguments, "contractAddress"),
        _require(arguments, "toAddress"),
        _require(arguments, "amount"),
    )


def handle_get_token_decimals(ctx: ToolContext, arguments: Dict[str, Any]) -> str:
    return ctx.contracts.get_token_decimals(_require(arguments, "tokenAddress"))


def handle_check_allowance(ctx: ToolContext, arguments: Dict[str, Any]) -> str:
    allowance = ctx.allowance.check_allowance(
        _require(arguments, "tokenAddress"),
        ctx.chain.address,
        _require(arguments, "spenderAddress"),
    )
    return str(allowance)


def handle_approve_token(ctx: ToolContext, arguments: Dict[str, Any]) -> Dict[str, Any]:
    token = _require(arguments, "tokenAddress")
    spender = _require(arguments, "spenderAddress")
    raw_amount = arguments.get("amount")
    amount: Optional[int] = None
    if raw_amount is not None and raw_amount != "":
        amount = parse_wei(raw_amount, "amount")

    outcome = ctx.allowance.approve(token, spender, amount)
    return {
        "hash": outcome.tx_hash,
        "url": outcome.explorer_url,
        "tokenAddress": token,
        "spenderAddress": spender,
        "amount": str(outcome.amount),
    }


def handle_deploy_contract(ctx: ToolContext, arguments: Dict[str, Any]) -> Dict[str, str]:
    constructor_args = arguments.get("constructorArgs") or []
    if not isinstance(constructor_args, list):
        raise InvalidArgument("constructorArgs", "must be an array")
    return ctx.contracts.deploy_contract(
        _require(arguments, "abi"),
        _require(arguments, "bytecode"),
        constructor_args,
    )


def handle_inch_swap(ctx: ToolContext, arguments: Dict[str, Any]) -> Dict[str, Any]:
    result = ctx.swap.swap(
        from_token=arguments.get("fromTokenAddress"),
        to_token=arguments.get("toTokenAddress"),
        amount=arguments.get("amount"),
        from_address=arguments.get("fromAddress"),
        slippage=arguments.get("slippage"),
        api_key=arguments.get("apiKey"),
        chain_id=arguments.get("chainId"),
    )
    return result.to_dict()


TOOL_HANDLERS: Dict[str, Callable[[ToolContext, Dict[str, Any]], Any]] = {
    "get_address": handle_get_address,
    "get_gas_price": handle_get_gas_price,
    "call_contract": handle_call_contract,
    "erc20_balance": handle_erc20_balance,
    "erc20_transfer": handle_erc20_transfer,
    "get_token_decimals": handle_get_token_decimals,
    "check_allowance": handle_check_allowance,
    "approve_token": handle_approve_token,
    "deploy_contract": handle_deploy_contract,
    "inch_swap": handle_inch_swap,
}


def get_handler(name: str) -> Callable[[ToolContext, Dict[str, Any]], Any]:
    """
    Raises:
        ToolNotFound: For unknown tool names
    """
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        raise ToolNotFound(name)
    return handler


def dispatch(ctx: ToolContext, name: str, arguments: Dict[str, Any]) -> Any:
    return get_handler(name)(ctx, arguments)
