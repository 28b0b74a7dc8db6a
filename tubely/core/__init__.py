"""
Core business logic for media ingestion.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. Collaborators (storage, probe, identity,
record store) are passed in as protocols so the pipeline can be tested
with fakes.
"""
