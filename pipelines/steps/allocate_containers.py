from __future__ import annotations

from pipelines.runner import RunContext
from services.container_allocator import ContainerAllocator


class AllocateContainers:
    def __init__(self, allocator: ContainerAllocator) -> None:
        self.allocator = allocator

    def run(self, ctx: RunContext) -> RunContext:
        ctx.status(f"Found {len(ctx.records)} profiles. Validating template...")
        ctx.containers = self.allocator.allocate(len(ctx.records), ctx.processing.frame_layout)
        ctx.meta["containers"] = len(ctx.containers)
        return ctx
