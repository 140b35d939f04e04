"""Document ingestion pipeline for Lambda processing

Runs when an object lands in the documents bucket.

Lambda Trigger: EventBridge "Object Created" event for the bucket
Processing Flow:
1. Read the object from S3
2. Extract text or structured content (TXT, JSON, PDF)
3. Analyze the content with Bedrock
4. Mark the document PROCESSED in DynamoDB with the analysis
"""
