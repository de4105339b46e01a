from liveedit.uploads.reassembler import UploadReassembler, asset_name, decode_payload

__all__ = ["UploadReassembler", "asset_name", "decode_payload"]
