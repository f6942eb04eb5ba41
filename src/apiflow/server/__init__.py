"""
apiflow HTTP service.

FastAPI app serving flow generation, recovery and validation.
"""

from .app import FlowServer, create_flow_server

__all__ = ['FlowServer', 'create_flow_server']
