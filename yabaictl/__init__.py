"""yabaictl - a yabai wrapper for better multi-display support.

Translates a handful of CLI subcommands into yabai socket messages, resolving
multi-monitor targets (the other display, the paired space of a composite
desktop) from the layout yabai reports.
"""
