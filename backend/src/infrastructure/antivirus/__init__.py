from .pass_through_scanner import PassThroughScanner

__all__ = ["PassThroughScanner"]
