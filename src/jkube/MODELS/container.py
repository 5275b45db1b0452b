"""
Runtime view of a container as reported by the container runtime.
"""
from typing import Dict, Optional
from pydantic import BaseModel


class Container(BaseModel):
    """
    A container known to the runtime. Only queried, never created, by the
    naming and start order logic.
    """
    name: str
    id: str
    ip_address: Optional[str] = None
    network_ips: Dict[str, str] = {}
