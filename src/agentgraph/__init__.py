"""agentgraph: dynamic-schema knowledge graphs for autonomous agents."""

__version__ = "0.1.0"
