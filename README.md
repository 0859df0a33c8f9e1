# tusbucket

`tusbucket` holds the building blocks for keeping resumable uploads that follow the tus protocol in an S3 bucket or an S3-compatible service. It has no third-party dependencies. You pass in the S3 client object yourself.

The bucket layout these pieces work with is as follows:

- `<id>.info` holds the upload's `FileInfo` as JSON.
- An S3 multipart upload under the object key receives the upload's data one part at a time.
- An optional `<id>.part` object holds trailing data that is still smaller than a multipart part.

## Installation

```
pip install .
```

## Modules

### `tusbucket.fileinfo`

`FileInfo` is a dataclass that describes an upload. It has these fields:

- `id`
- `size`
- `size_is_deferred`
- `offset`
- `meta_data`
- `is_partial`
- `is_final`
- `partial_uploads`
- `storage`

`encode_info(info)` returns the info object as compact UTF-8 JSON:

- The keys are `ID`, `Size`, `SizeIsDeferred`, `Offset`, `MetaData`, `IsPartial`, `IsFinal`, `PartialUploads` and `Storage`, in that order.
- The keys of `MetaData` and `Storage` are sorted.
- The characters `<`, `>`, `&`, U+2028 and U+2029 are written as `\u` escapes.

`decode_info(data)` reads such a document back:

- A field that is missing or `null` takes its default.
- A field of the wrong type raises `ValueError`.

```python
from tusbucket.fileinfo import FileInfo, encode_info, decode_info

info = FileInfo(id="abc+xyz", size=500, meta_data={"filetype": "text/plain"})
assert decode_info(encode_info(info)) == info
```

### `tusbucket.partsize`

`calc_optimal_part_size(size, preferred_part_size, max_part_size, max_multipart_parts)` picks a part size for an upload of `size` bytes:

- If the upload fits into `max_multipart_parts` parts of the preferred size, it returns the preferred size.
- Otherwise it returns `size / max_multipart_parts`, rounded up.
- If the result would exceed `max_part_size`, it raises `ValueError`.

### `tusbucket.part_producer`

`PartProducer(source, backlog, tmp_dir="", disk_write_observer=None)` cuts a binary stream into `PartChunk`s of at most a given size.

- Run `produce(part_size)` in a thread of its own, and iterate `chunks()` in the consumer.
- At most `backlog` parts wait unread. The backlog is always at least 1.
- `cancel()` stops production.
- `close_unread_files()` releases the parts that were produced but never taken.
- A read error ends production and is left in `producer.err`.

Where the parts are buffered:

- By default each part goes into a temporary file named `tusbucket-s3-tmp-*`, in `tmp_dir` or in the system temporary directory.
- With `tmp_dir="_memory"`, or with the environment variable `TUSBUCKET_TEMP_MEMORY=1`, parts are kept in memory instead.

Every `PartChunk` has a `reader` positioned at its start and a `size`. `PartChunk.close()` removes a part's temporary file.

`disk_write_observer`, if given, is called with the time each part took to buffer, in whole milliseconds.

```python
import threading
from tusbucket.part_producer import PartProducer

producer = PartProducer(src, backlog=20)
thread = threading.Thread(target=producer.produce, args=(5 * 1024 * 1024,))
thread.start()
try:
    for chunk in producer.chunks():
        try:
            send(chunk.reader, chunk.size)
        finally:
            chunk.close()
finally:
    producer.cancel()
    producer.close_unread_files()
    thread.join()
if producer.err is not None:
    raise producer.err
```

### `tusbucket.settings`

`split_ids(upload_id)` splits an upload ID at its last `+` into the object ID and the multipart ID. If the ID has no `+`, both parts come back empty.

`StoreSettings(bucket, service, ...)` is a dataclass that holds the backend configuration. The defaults are:

| Setting | Default |
| --- | --- |
| `max_part_size` | 5 GiB |
| `min_part_size` | 5 MiB |
| `preferred_part_size` | 50 MiB |
| `max_multipart_parts` | 10000 |
| `max_object_size` | 5 TiB |
| `max_buffered_parts` | 20 |
| `concurrent_part_uploads` | 10 |

It also has these settings:

- `object_prefix`
- `metadata_object_prefix`
- `temporary_directory`
- `disable_content_hashes`
- `request_duration_observer`, which is called as `(label, milliseconds)`
- `disk_write_observer`

It offers these methods:

- `key_with_prefix(key)` puts the key under `object_prefix`.
- `metadata_key_with_prefix(key)` puts the key under `metadata_object_prefix`, or under `object_prefix` if that is empty. In both methods a `/` is added after a prefix that does not already end in one.
- `calc_optimal_part_size(size)` applies the part size calculation to these settings.
- `set_concurrent_part_uploads(limit)` replaces `upload_semaphore` with a semaphore of that size. A limit below 1 raises `ValueError`.
- `list_all_parts(object_id, multipart_id)` lists every uploaded part, following truncated listings. Each part is a dict with `PartNumber`, `Size` and `ETag`.
- `head_incomplete_part(object_id)` returns the size of the `.part` object. It returns 0 if the object is reported as `NoSuchKey`, `NotFound`, `AccessDenied` or `Forbidden`.
- `download_incomplete_part(object_id)` copies the `.part` object into a temporary file and returns it as a `PartChunk`. It returns `None` if the object is missing, and raises `OSError` on a short read.
- `put_incomplete_part(object_id, body)` stores the `.part` object.
- `delete_incomplete_part(object_id)` removes the `.part` object.

The `service` object must offer `list_parts`, `head_object`, `get_object`, `put_object` and `delete_object`:

- Each takes S3-style keyword arguments such as `Bucket=`, `Key=` and `UploadId=`.
- Each returns a dict.
- A failure is raised as an `S3APIError` or an `S3ResponseError`.

```python
from tusbucket.settings import StoreSettings, split_ids

settings = StoreSettings("my-bucket", client, object_prefix="uploads")
object_id, multipart_id = split_ids("abc+xyz")
parts = settings.list_all_parts(object_id, multipart_id)
offset = sum(p["Size"] for p in parts) + settings.head_incomplete_part(object_id)
```

### `tusbucket.errors`

- `TusError(code, message, status)` is a protocol error. It prints as `CODE: message`.
- `ERR_NOT_FOUND` and `ERR_INCOMPLETE_UPLOAD` are ready-made instances.
- `S3APIError(code, message)` is an error from the S3 API.
- `S3ResponseError(status_code, headers, message)` is an HTTP error response. Its header names are stored in lower case.
- `error_code(err)` finds the S3 error code in an exception or in the exceptions that caused it.
- `is_error_code(err, *codes)` tests that code against the codes given.

## What this package does not do

This package has no upload object and no store front end. Nothing in it creates, resumes, writes, finishes or terminates an upload. It does not concatenate uploads and does not serve an upload's content over HTTP. It provides the configuration, the info encoding, the part size calculation, the part buffering and the requests for part listings and incomplete parts that such a store is built from.

## Tests

```
pip install .[test]
pytest
```