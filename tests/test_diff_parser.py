"""
Tests for splitting unified diffs into file diffs.
"""
from codesuggest.services.diff_parser import DiffParser

MULTI_FILE_DIFF = """diff --git a/src/app.py b/src/app.py
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,4 @@
 import os
+import sys
 
 def main():
diff --git a/web/index.js b/web/index.js
new file mode 100644
--- /dev/null
+++ b/web/index.js
@@ -0,0 +1,2 @@
+const a = 1;
+console.log(a);
diff --git a/old.txt b/old.txt
deleted file mode 100644
--- a/old.txt
+++ /dev/null
@@ -1,1 +0,0 @@
-gone
"""


def test_splits_per_file_and_skips_deleted():
    files = DiffParser().parse(MULTI_FILE_DIFF)

    assert [f.file_path for f in files] == ["src/app.py", "web/index.js"]
    assert "+import sys" in files[0].diff
    assert files[0].diff.startswith("@@ -1,3 +1,4 @@")
    assert "+console.log(a);" in files[1].diff


def test_empty_input():
    assert DiffParser().parse("") == []
    assert DiffParser().parse("   \n") == []
