"""Timeline layout for roadmap rendering.

Positions are normalized fractions of a padded date window so any renderer
can scale them to its own width. Row assignment is a pure function of the
milestone set, so re-rendering the same roadmap never reshuffles rows.
"""
