"""Configuration — defaults, YAML/env hierarchy, validated settings."""
