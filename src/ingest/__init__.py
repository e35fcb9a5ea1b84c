"""Local import pipeline.

This package reads delimited rows, converts them into DynamoDB items,
and drains fixed-size batches through a bounded queue to writer threads.
"""
