from solfolio.core.dto.io._base import BaseIOModelDTO, ProviderResponseDTO
from solfolio.core.dto.io.position import AssetDTO, PositionRecordDTO

__all__ = ["BaseIOModelDTO", "ProviderResponseDTO", "AssetDTO", "PositionRecordDTO"]
