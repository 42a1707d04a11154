from . import habits, coughs, stats

__all__ = ['habits', 'coughs', 'stats']
