"""
Copy example: copy a file through a temporary staging file with errchains.
"""

import logging
import os
import shutil
import sys
import tempfile

from errchains import Group, LoggingMiddleware, Ref


def copy_stream(src, dst):
    """Copy src to dst and return the number of bytes copied."""
    shutil.copyfileobj(src, dst)
    return dst.tell()


def copy_file(source_path, target_path):
    """
    Copy source_path to target_path via a staging file.

    Returns:
        (Result, bytes copied)
    """
    group = Group(name="copy").use_middleware(LoggingMiddleware())
    files = {}
    size = Ref(int)

    def open_source():
        files['src'] = open(source_path, 'rb')

    def open_staging():
        fd, files['staging_path'] = tempfile.mkstemp(dir=os.path.dirname(target_path) or '.')
        files['staging'] = os.fdopen(fd, 'wb')

    def close_staging():
        files['staging'].close()

    def publish():
        files['staging'].close()
        os.replace(files['staging_path'], target_path)

    def remove_leftovers():
        path = files.get('staging_path')
        if path and os.path.exists(path):
            os.unlink(path)

    group.add(open_source)
    group.defer(lambda: files['src'].close(), name="close_source")
    group.add(open_staging)
    group.defer(close_staging)
    # Lambdas resolve the file objects only once the previous steps ran.
    group.add(lambda: copy_stream(files['src'], files['staging']), name="copy_stream")
    group.add_call(os.path.getsize, source_path).fill(size)
    group.add(publish)
    group.final(remove_leftovers)

    result = group.execute()
    return result, size.value


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 2:
        print("usage: copy_files.py SOURCE TARGET")
        return 2

    result, copied = copy_file(argv[0], argv[1])
    if result:
        print(f"Copied {copied} bytes to {argv[1]}")
        return 0
    print(f"Copy failed: {result.error}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
