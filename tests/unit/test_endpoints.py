"""Unit tests for regional endpoint URLs."""

import pytest

from s3pack.core.endpoints import (
    BucketAddress,
    bucket_url,
    list_objects_url,
    object_url,
    parse_bucket_url,
)


class TestEndpointUrls:
    """Tests for URL construction."""
    
    def test_bucket_url_is_virtual_hosted(self):
        assert bucket_url("my-bucket", "us-east-1") == "https://my-bucket.s3.us-east-1.amazonaws.com/"
    
    def test_object_url_has_single_separator(self):
        assert object_url("b", "us-west-2", "a/b.txt") == "https://b.s3.us-west-2.amazonaws.com/a/b.txt"
    
    def test_list_url_without_token(self):
        assert list_objects_url("b", "us-east-1") == "https://b.s3.us-east-1.amazonaws.com/?list-type=2"


class TestParseBucketUrl:
    """Tests for reading bucket, region and key back out of a URL."""
    
    def test_parses_object_url(self):
        url = object_url("my.dotted.bucket", "ap-south-1", "dir/file name.txt")
        
        assert parse_bucket_url(url) == BucketAddress(
            bucket="my.dotted.bucket",
            region="ap-south-1",
            key="dir/file name.txt",
        )
    
    def test_bucket_url_has_empty_key(self):
        address = parse_bucket_url(list_objects_url("b", "eu-central-1", "tok"))
        
        assert address.bucket == "b"
        assert address.region == "eu-central-1"
        assert address.key == ""
    
    def test_rejects_other_hosts(self):
        with pytest.raises(ValueError, match="Not a regional S3 bucket URL"):
            parse_bucket_url("https://example.com/file")
