from chaos_exporter.services.poller.loop import PollLoop, PollStats
from chaos_exporter.services.poller.retry import RetryConfig

__all__ = ["PollLoop", "PollStats", "RetryConfig"]
