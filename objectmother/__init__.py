import os

if 'GIT_BUILD_VERSION' in os.environ:
    __version__ = os.environ['GIT_BUILD_VERSION']
else:
    __version__ = '1.0.0'
