from dissect.cstruct import cstruct

resource_structure = cstruct(endian=">")
resource_structure.load("""
    // Tree record, format version 1 (14 bytes)
    // count_or_locale: child_count for directories, locale for files
    // offset: child_offset (node index) for directories, data_offset (byte offset) for files
    struct TreeNodeV1 {
        uint32 name_offset;             // Byte offset into the name table, unused for the root
        uint16 flags;                   // Compressed = 0x01, Directory = 0x02, CompressedZstd = 0x04
        uint32 count_or_locale;
        uint32 offset;
    };

    // Tree record, format version 2 (22 bytes)
    struct TreeNodeV2 {
        uint32 name_offset;
        uint16 flags;
        uint32 count_or_locale;
        uint32 offset;
        uint64 extra;                   // Opaque, not needed for extraction
    };

    // Name table entry header, followed by `length` UTF-16BE code units
    struct NameHeader {
        uint16 length;                  // Number of UTF-16 code units, not bytes
        uint32 hash;
    };

    // Data blob entry header, followed by `length` payload bytes
    struct DataHeader {
        uint32 length;
    };

    // Prefix of a zlib compressed payload
    struct CompressedHeader {
        uint32 expected_length;         // Size after inflating
    };
""")
