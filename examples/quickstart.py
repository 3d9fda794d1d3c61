import logging

from sftp_fetch import RemoteFileFetcher

logging.basicConfig(level=logging.INFO)

with RemoteFileFetcher("ssh.example.com", username="root", password="Secret") as fetcher:
    print(fetcher.download_file("/etc/hostname").decode())
