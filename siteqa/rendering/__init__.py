"""
Rendering package: headless browser implementations of the page source capability.
"""

from .playwright_source import PlaywrightPageSource, open_browser_session

__all__ = ['PlaywrightPageSource', 'open_browser_session']
