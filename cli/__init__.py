"""CLI package: click commands and Rich theme."""
