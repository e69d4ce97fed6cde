"""
ragmcp - MCP server para búsqueda semántica sobre un proyecto.

Un MCP server que indexa el código, la documentación y los skills de un proyecto
en colecciones vectoriales, accesibles por cualquier AI agent desde el editor.

Stack:
- Python + FastMCP (SDK oficial)
- ChromaDB (colecciones vectoriales code / docs / skills)
- stdio o SSE (transporte)
- Archivos del proyecto (source of truth)
"""

__version__ = "0.1.0"
