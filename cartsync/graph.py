"""
Graph — thin runner over nodnod for the quote pipeline.

    from cartsync import graph as G

    @G.node
    class Totals:
        def __init__(self, data: PricingResult) -> None:
            self.data = data

        @classmethod
        def __compose__(cls, cart: CartNode, ship: ShippingNode) -> "Totals":
            ...

    pipeline = G.graph(Totals)          # compile once
    totals = await pipeline(request)    # inputs injected by runtime type

Nodes are wired by the parameter annotations of __compose__, so modules that
define nodes must not use `from __future__ import annotations`.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, cast

from nodnod import EventLoopAgent, Node, Scope, Value
from nodnod import scalar_node as node


class TypedScope:
    """nodnod.Scope with typed push/get."""

    __slots__ = ("_scope",)

    def __init__(self, detail: str = "scope") -> None:
        self._scope = Scope(detail=detail)

    @property
    def inner(self) -> Scope:
        return self._scope

    def inject[T](self, typ: type[T], value: T) -> TypedScope:
        self._scope.push(Value(typ, value))
        return self

    def get[T](self, typ: type[T]) -> T:
        found = self._scope.get(typ)
        if found is None:
            raise KeyError(f"{typ.__name__} was not produced by the graph")
        return cast(T, found.value)

    async def __aenter__(self) -> TypedScope:
        await self._scope.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._scope.__aexit__(*args)


@dataclass(frozen=True, slots=True)
class Compiled[T]:
    """
    Agent built once for a target node, run once per call.

    Independent nodes of the same depth run concurrently.
    """

    target: type[T]
    agent: EventLoopAgent

    async def __call__(self, *inputs: object) -> T:
        async with TypedScope(detail=f"graph:{self.target.__name__}") as scope:
            for value in inputs:
                scope.inject(cast(type[Any], type(value)), value)

            run = cast(
                Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]],
                getattr(self.agent, "run"),
            )
            await run(scope.inner, {})
            return scope.get(self.target)


def graph[T](target: type[T]) -> Compiled[T]:
    """Compile the graph that ends at target; dependencies are discovered."""
    nodes: set[type[Node[Any, Any]]] = {cast(type[Node[Any, Any]], target)}
    return Compiled(target=target, agent=EventLoopAgent.build(nodes))


__all__ = ("node", "TypedScope", "Compiled", "graph")
