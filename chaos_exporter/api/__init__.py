from chaos_exporter.api.routes import router

__all__ = ["router"]
