"""Find cookbook versions on a Chef server that no environment can still use.

The `cookbook-cleanup` console script runs `cookbook_cleanup.cli.cli:main`.
"""
