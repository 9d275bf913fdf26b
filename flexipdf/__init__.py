"""FlexiPDF document library backend."""
