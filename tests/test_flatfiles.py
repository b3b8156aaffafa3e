import gzip
import unittest
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from massive.errors import DecompressionError, FlatFilesError
from massive.flatfiles import FileInfo, FlatFilesClient, build_prefix, object_key
from massive.infra.config import FlatFilesConfig


class StubBody:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.closed = False

    def read(self) -> bytes:
        return self.data

    def iter_chunks(self, chunk_size: int = 1024):
        for start in range(0, len(self.data), chunk_size):
            yield self.data[start:start + chunk_size]

    def close(self) -> None:
        self.closed = True


class StubS3:
    def __init__(self, objects: Optional[Dict[str, bytes]] = None) -> None:
        self.objects = objects or {}
        self.calls: List[Dict[str, Any]] = []
        self.bodies: List[StubBody] = []

    def list_objects_v2(self, **params: Any) -> Dict[str, Any]:
        self.calls.append({"op": "list_objects_v2", **params})
        keys = sorted(key for key in self.objects if key.startswith(params["Prefix"]))[: params["MaxKeys"]]
        return {
            "Contents": [
                {
                    "Key": key,
                    "Size": len(self.objects[key]),
                    "LastModified": datetime(2024, 1, 16, tzinfo=timezone.utc),
                    "ETag": '"abc"',
                }
                for key in keys
            ]
        }

    def get_object(self, **params: Any) -> Dict[str, Any]:
        self.calls.append({"op": "get_object", **params})
        key = params["Key"]
        if key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "not found"}}, "GetObject")
        body = StubBody(self.objects[key])
        self.bodies.append(body)
        return {"Body": body}

    def generate_presigned_url(self, **params: Any) -> str:
        self.calls.append({"op": "generate_presigned_url", **params})
        return f"https://{params['Params']['Bucket']}/{params['Params']['Key']}?X-Amz-Expires={params['ExpiresIn']}"


TRADES_KEY = "stocks/trades/2024/01/15/trades.csv.gz"
TRADES_CSV = b"ticker,price,size\nAAPL,150.0,10\nMSFT,300.0,5\n"


class PrefixTest(unittest.TestCase):
    def test_prefix_variants(self) -> None:
        self.assertEqual("stocks/trades/2024/01/15/", build_prefix("stocks", "trades", "2024-01-15"))
        self.assertEqual("stocks/trades/2024/01/15/", build_prefix("stocks", "trades", date(2024, 1, 15)))
        self.assertEqual("options/quotes/", build_prefix("options", "quotes"))
        self.assertEqual("crypto/", build_prefix("crypto"))
        self.assertEqual("", build_prefix())

    def test_explicit_prefix_wins(self) -> None:
        self.assertEqual("custom/", build_prefix("stocks", "trades", "2024-01-15", prefix="custom/"))

    def test_object_key(self) -> None:
        self.assertEqual(TRADES_KEY, object_key("stocks", "trades", "2024-01-15", "trades"))
        self.assertEqual(
            "stocks/minute_aggs/2024/03/01/minute_aggs.json.gz",
            object_key("stocks", "minute_aggs", datetime(2024, 3, 1, 9, 30), "minute_aggs", fmt="json"),
        )

    def test_invalid_date_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_prefix("stocks", "trades", "15/01/2024")


class FlatFilesClientTest(unittest.TestCase):
    def setUp(self) -> None:
        self.s3 = StubS3(
            {
                TRADES_KEY: gzip.compress(TRADES_CSV),
                "stocks/trades/2024/01/15/extra.csv.gz": gzip.compress(b"x"),
                "stocks/quotes/2024/01/15/quotes.csv.gz": gzip.compress(b"q"),
                "stocks/trades/2024/01/15/broken.csv.gz": b"definitely not gzip",
            }
        )
        self.client = FlatFilesClient(FlatFilesConfig(bucket="test-bucket"), s3_client=self.s3)

    def test_list_files_by_criteria(self) -> None:
        files = self.client.list_files(asset_class="stocks", data_type="trades", date="2024-01-15")

        self.assertEqual(
            ["stocks/trades/2024/01/15/broken.csv.gz", "stocks/trades/2024/01/15/extra.csv.gz", TRADES_KEY],
            [info.key for info in files],
        )
        self.assertIsInstance(files[0], FileInfo)
        self.assertEqual('"abc"', files[0].etag)
        self.assertEqual(
            {"op": "list_objects_v2", "Bucket": "test-bucket", "Prefix": "stocks/trades/2024/01/15/", "MaxKeys": 1000},
            self.s3.calls[-1],
        )

    def test_list_files_respects_max_keys(self) -> None:
        self.assertEqual(1, len(self.client.list_files(prefix="stocks/", max_keys=1)))

    def test_list_files_with_no_contents(self) -> None:
        self.assertEqual([], self.client.list_files(asset_class="futures"))

    def test_download_file_returns_raw_bytes(self) -> None:
        self.assertEqual(gzip.compress(TRADES_CSV), self.client.download_file(TRADES_KEY))
        self.assertTrue(self.s3.bodies[-1].closed)

    def test_download_and_decompress(self) -> None:
        self.assertEqual(TRADES_CSV, self.client.download_and_decompress(TRADES_KEY))

    def test_invalid_gzip_raises_decompression_error(self) -> None:
        with self.assertLogs("massive.flatfiles", level="WARNING"):
            with self.assertRaises(DecompressionError) as ctx:
                self.client.download_and_decompress("stocks/trades/2024/01/15/broken.csv.gz")
        self.assertIsInstance(ctx.exception, FlatFilesError)
        self.assertIsNotNone(ctx.exception.cause)

    def test_missing_object_raises_flat_files_error(self) -> None:
        with self.assertLogs("massive.flatfiles", level="WARNING"):
            with self.assertRaises(FlatFilesError) as ctx:
                self.client.download_file("stocks/trades/1999/01/01/trades.csv.gz")
        self.assertIsInstance(ctx.exception.cause, ClientError)

    def test_presigned_url(self) -> None:
        url = self.client.get_presigned_url(TRADES_KEY, expires_in=600)

        self.assertEqual(f"https://test-bucket/{TRADES_KEY}?X-Amz-Expires=600", url)
        self.assertEqual(
            {
                "op": "generate_presigned_url",
                "ClientMethod": "get_object",
                "Params": {"Bucket": "test-bucket", "Key": TRADES_KEY},
                "ExpiresIn": 600,
            },
            self.s3.calls[-1],
        )

    def test_stream_file_is_lazy_and_chunked(self) -> None:
        self.s3.objects["big.bin"] = bytes(range(256)) * 10

        chunks = self.client.stream_file("big.bin", chunk_size=1000)
        self.assertEqual([], self.s3.calls)

        received = list(chunks)
        self.assertEqual([1000, 1000, 560], [len(chunk) for chunk in received])
        self.assertEqual(self.s3.objects["big.bin"], b"".join(received))
        self.assertTrue(self.s3.bodies[-1].closed)

        # an exhausted stream yields nothing more
        self.assertEqual([], list(chunks))

    def test_stream_missing_file_fails_on_first_chunk(self) -> None:
        chunks = self.client.stream_file("missing.csv.gz")
        with self.assertLogs("massive.flatfiles", level="WARNING"):
            with self.assertRaises(FlatFilesError):
                next(chunks)

    def test_default_bucket(self) -> None:
        client = FlatFilesClient(s3_client=self.s3)
        self.assertEqual("flatfiles.massive.com", client.bucket)


if __name__ == "__main__":
    unittest.main()
