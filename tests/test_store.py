import unittest

from s3_explorer.models import ConnectionProfile
from s3_explorer.store import DELETE_BATCH_SIZE, Boto3ObjectStore, create_client

from fakes import FakeS3Client, at, client_error


class CreateClientTests(unittest.TestCase):
    def test_custom_endpoint_uses_path_style_addressing(self):
        calls = []
        profile = ConnectionProfile(
            name="minio",
            endpoint_url="http://localhost:9000",
            access_key="access",
            secret_key="secret",
            region="",
        )

        create_client(profile, lambda *args, **kwargs: calls.append((args, kwargs)))

        args, kwargs = calls[0]
        self.assertEqual(("s3",), args)
        self.assertEqual("http://localhost:9000", kwargs["endpoint_url"])
        self.assertEqual("access", kwargs["aws_access_key_id"])
        self.assertEqual("secret", kwargs["aws_secret_access_key"])
        self.assertEqual("us-east-1", kwargs["region_name"])
        self.assertEqual("s3v4", kwargs["config"].signature_version)
        self.assertEqual({"addressing_style": "path"}, kwargs["config"].s3)

    def test_aws_endpoint_left_to_boto(self):
        calls = []
        profile = ConnectionProfile(name="aws", endpoint_url="", access_key="a", secret_key="s", region="eu-west-1")

        create_client(profile, lambda *args, **kwargs: calls.append(kwargs))

        self.assertIsNone(calls[0]["endpoint_url"])
        self.assertEqual("eu-west-1", calls[0]["region_name"])
        self.assertIsNone(calls[0]["config"].s3)


class Boto3ObjectStoreTests(unittest.TestCase):
    def setUp(self):
        self.client = FakeS3Client(
            {
                "docs/": {},
                "docs/a.txt": {"last_modified": at(1), "size": 3},
                "docs/img/cat.png": {},
                "root.txt": {},
            }
        )
        self.store = Boto3ObjectStore(self.client)

    def test_list_group_splits_groups_and_items(self):
        result = self.store.list_group("bucket", "docs/", "/")

        self.assertEqual(["docs/img/"], result.groups)
        self.assertEqual(["docs/", "docs/a.txt"], [item.key for item in result.items])
        self.assertEqual(at(1), result.items[1].last_modified)
        self.assertEqual(3, result.items[1].size)
        self.assertIsNone(result.next_token)
        self.assertEqual(
            {"Bucket": "bucket", "Prefix": "docs/", "Delimiter": "/"},
            self.client.list_calls[0],
        )

    def test_list_group_passes_token_and_page_size(self):
        first = self.store.list_group("bucket", "", "/", max_keys=1)
        second = self.store.list_group("bucket", "", "/", continuation_token=first.next_token, max_keys=1)

        self.assertEqual(["docs/"], first.groups)
        self.assertEqual("tok-1", first.next_token)
        self.assertEqual(["root.txt"], [item.key for item in second.items])
        self.assertIsNone(second.next_token)
        self.assertNotIn("Prefix", self.client.list_calls[0])
        self.assertEqual("tok-1", self.client.list_calls[1]["ContinuationToken"])
        self.assertEqual(1, self.client.list_calls[1]["MaxKeys"])

    def test_list_group_tolerates_empty_response(self):
        self.client.list_objects_v2 = lambda **kwargs: {"IsTruncated": False}

        result = self.store.list_group("bucket", "nothing/", "/")

        self.assertEqual([], result.groups)
        self.assertEqual([], result.items)
        self.assertIsNone(result.next_token)

    def test_check_public_read_requires_all_users_read_grant(self):
        self.client.public_keys.add("root.txt")

        self.assertTrue(self.store.check_public_read("bucket", "root.txt"))
        self.assertFalse(self.store.check_public_read("bucket", "docs/a.txt"))

    def test_delete_objects_batches_and_collects_errors(self):
        keys = [f"bulk/{idx:05d}" for idx in range(DELETE_BATCH_SIZE * 2 + 5)]
        for key in keys:
            self.client.add("bucket", key)
        self.client.delete_objects_errors["bulk/00003"] = "Access Denied"

        failures = self.store.delete_objects("bucket", keys)

        self.assertEqual([DELETE_BATCH_SIZE, DELETE_BATCH_SIZE, 5], [len(c) for c in self.client.delete_objects_calls])
        self.assertEqual({"bulk/00003": "Access Denied"}, failures)
        self.assertIn("bulk/00003", self.client.keys())
        self.assertNotIn("bulk/00004", self.client.keys())

    def test_delete_objects_keeps_going_after_failed_batch(self):
        keys = [f"bulk/{idx:05d}" for idx in range(DELETE_BATCH_SIZE + 1)]
        for key in keys:
            self.client.add("bucket", key)
        self.client.delete_objects_errors[keys[0]] = client_error("InternalError", "Boom", "DeleteObjects")

        failures = self.store.delete_objects("bucket", keys)

        self.assertEqual(DELETE_BATCH_SIZE, len(failures))
        self.assertEqual(2, len(self.client.delete_objects_calls))
        self.assertNotIn(keys[-1], self.client.keys())

    def test_copy_uses_structured_copy_source(self):
        self.store.copy_object("bucket", "bucket", "root.txt", "renamed.txt")

        call = self.client.copy_calls[0]
        self.assertEqual({"Bucket": "bucket", "Key": "root.txt"}, call["CopySource"])
        self.assertEqual("renamed.txt", call["Key"])
        self.assertIn("renamed.txt", self.client.keys())

    def test_get_object_reads_body(self):
        self.client.add("bucket", "notes.txt", body=b"hello")

        self.assertEqual(b"hello", self.store.get_object("bucket", "notes.txt"))

    def test_presign_download_uses_get_object(self):
        url = self.store.presign_download("bucket", "root.txt", 60)

        self.assertIn("root.txt", url)
        self.assertEqual("get_object", self.client.presign_calls[0]["method"])
        self.assertEqual(60, self.client.presign_calls[0]["expires_in"])
        with self.assertRaises(ValueError):
            self.store.presign_download("bucket", "root.txt", 0)

    def test_make_public_sets_public_read_acl(self):
        self.store.make_public("bucket", "root.txt")

        self.assertEqual("public-read", self.client.acl_updates[0]["ACL"])
        self.assertTrue(self.store.check_public_read("bucket", "root.txt"))

    def test_list_buckets(self):
        buckets = self.store.list_buckets()

        self.assertEqual(["bucket"], [bucket.name for bucket in buckets])


if __name__ == "__main__":
    unittest.main()
