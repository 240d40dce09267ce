import pathlib

from qrcextract import config
from qrcextract.resource.nodes import node_stride


class ExtractionSession(object):
    """Everything one extraction pass needs.

    The buffers are only borrowed: they are kept as read-only views and must
    stay valid until the walk returns. Their lengths are the only extents the
    decoder trusts.
    """

    def __init__(self, version, tree, names, data, output_base,
                 root_name=config.DEFAULT_ROOT_NAME, max_path_length=config.MAX_PATH_LENGTH):
        node_stride(version)

        self.version = version
        self.tree = memoryview(tree).cast('B').toreadonly()
        self.names = memoryview(names).cast('B').toreadonly()
        self.data = memoryview(data).cast('B').toreadonly()
        self.output_base = pathlib.Path(output_base)
        self.root_name = root_name
        self.max_path_length = max_path_length

        # Soft failures that did not abort the walk
        self.diagnostics = []

    def record(self, message):
        self.diagnostics.append(message)

    def release(self):
        for view in (self.tree, self.names, self.data):
            view.release()
