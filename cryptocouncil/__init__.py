# cryptocouncil/__init__.py
# =============================================================================
# CryptoCouncil — 加密货币评审委员会引擎。 / Crypto council rating engine.
# =============================================================================

"""CryptoCouncil — 加密货币评审委员会引擎。 / Crypto council rating engine."""

from cryptocouncil.api.service import CouncilService

__version__ = "0.1.0"
__all__ = ["CouncilService", "__version__"]
