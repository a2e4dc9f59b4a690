"""Starter .gitcommander.toml template."""

DEFAULT_TOML = """\
# GitCommander Configuration
version = "1.0"

[git]
executable = "git"
# timeout = 60               # seconds; unset waits for git to finish
locale = "C"                 # git output must stay in English to be parsed

[status]
untracked_files = "all"      # all | normal | no

[output]
format = "terminal"          # terminal | json
show_summary = true

[logging]
level = "warning"            # debug | info | warning | error
"""
