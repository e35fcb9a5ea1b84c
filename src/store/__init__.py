"""Target store layer.

This package creates AWS clients and writes converted item batches
to DynamoDB through the batch-write API.
"""
