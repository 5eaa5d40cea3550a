"""txthook - ACME DNS-01 hook that manages challenge TXT records in Linode DNS."""

from txthook.hook import HookDispatcher
from txthook.linode import LinodeClient

__all__ = ["HookDispatcher", "LinodeClient"]
__version__ = "0.1.0"
