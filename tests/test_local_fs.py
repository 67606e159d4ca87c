"""
Tests for the local sync-root view.
"""
import pytest

from photos_folder_sync.local_fs import LocalFile, list_files, scan_root


class TestScanRoot:

    def test_directories_sorted_with_their_files(self, make_tree):
        root = make_tree({
            'Work/': {'b.png': b'b', 'a.pdf': b'a'},
            'Vacation2022/': {'IMG_2.jpg': b'2', 'IMG_1.jpg': b'1'},
        })

        directories = scan_root(root)

        assert [d.name for d in directories] == ['Vacation2022', 'Work']
        assert [f.name for f in directories[0].files] == ['IMG_1.jpg', 'IMG_2.jpg']
        assert [f.name for f in directories[1].files] == ['a.pdf', 'b.png']

    def test_loose_root_files_are_not_directories(self, make_tree):
        root = make_tree({'loose.jpg': b'x', 'Album/': {}})

        assert [d.name for d in scan_root(root)] == ['Album']

    def test_nested_directories_are_not_descended(self, make_tree):
        root = make_tree({'Album/': {'top.jpg': b'x'}})
        (root / 'Album' / 'nested').mkdir()
        (root / 'Album' / 'nested' / 'deep.jpg').write_bytes(b'y')

        directory = scan_root(root)[0]

        assert [f.name for f in directory.files] == ['top.jpg']

    def test_hidden_entries_skipped(self, make_tree):
        root = make_tree({'.git/': {'config': b''}, 'Album/': {'.DS_Store': b'', 'Thumbs.db': b'', 'a.jpg': b''}})

        directories = scan_root(root)

        assert [d.name for d in directories] == ['Album']
        assert [f.name for f in directories[0].files] == ['a.jpg']

    def test_hidden_entries_included_on_request(self, make_tree):
        root = make_tree({'Album/': {'.hidden.jpg': b''}})

        assert [f.name for f in scan_root(root, include_hidden=True)[0].files] == ['.hidden.jpg']

    def test_missing_root(self, tmp_path):
        with pytest.raises(NotADirectoryError):
            scan_root(tmp_path / 'nope')

    def test_root_that_is_a_file(self, tmp_path):
        path = tmp_path / 'file.jpg'
        path.write_bytes(b'')

        with pytest.raises(NotADirectoryError):
            scan_root(path)


class TestLocalFile:

    def test_properties(self, tmp_path):
        path = tmp_path / 'IMG_0001.JPG'
        path.write_bytes(b'12345')
        local = LocalFile(path)

        assert local.name == 'IMG_0001.JPG'
        assert local.extension == '.JPG'
        assert local.size == 5
        assert local.read_bytes() == b'12345'

    def test_list_files_only_returns_regular_files(self, make_tree):
        root = make_tree({'a.jpg': b'a', 'Sub/': {}})

        assert [f.name for f in list_files(root)] == ['a.jpg']
