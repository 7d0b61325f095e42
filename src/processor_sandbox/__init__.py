from .server import ProcessorSandboxServer

__all__ = ["ProcessorSandboxServer"]
