"""Example contracts built on promptbind."""
