"""Link local libraries into a project's node_modules without publishing them.

Each ``relativeDependencies`` entry is fingerprinted, and rebuilt, packed and
reinstalled only when its sources changed since the last install.
"""

__version__ = "1.1.0"
