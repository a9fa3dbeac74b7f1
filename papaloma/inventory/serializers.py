from rest_framework import serializers

KONDISI_BAIK = 'baik'
KONDISI_RUSAK = 'rusak'
KONDISI_KADALUARSA = 'kadaluarsa'

KONDISI_CHOICES = [
    (KONDISI_BAIK, 'Baik'),
    (KONDISI_RUSAK, 'Rusak'),
    (KONDISI_KADALUARSA, 'Kadaluarsa'),
]


def required_text(message, **kwargs):
    return serializers.CharField(error_messages={'required': message, 'blank': message}, **kwargs)


def non_negative_number(message):
    return serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=0,
        required=False,
        error_messages={'min_value': message},
    )


class KategoriInputSerializer(serializers.Serializer):
    name = required_text('Nama kategori harus diisi', max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class BarangInputSerializer(serializers.Serializer):
    name = required_text('Nama barang harus diisi')
    kategoriId = serializers.IntegerField(
        min_value=1,
        error_messages={'required': 'Kategori harus dipilih', 'invalid': 'Kategori harus dipilih'},
    )
    satuan = required_text('Satuan harus diisi')
    stok = serializers.IntegerField(min_value=0, required=False, error_messages={'min_value': 'Stok tidak boleh negatif'})
    stokMinimum = serializers.IntegerField(
        min_value=0,
        required=False,
        error_messages={'min_value': 'Stok minimum tidak boleh negatif'},
    )
    hargaPerUnit = non_negative_number('Harga tidak boleh negatif')
    lokasi = required_text('Lokasi harus diisi')
    kondisi = serializers.ChoiceField(choices=KONDISI_CHOICES, required=False)
    tanggalKadaluarsa = serializers.DateField(required=False, allow_null=True)
    catatan = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TransaksiInputSerializer(serializers.Serializer):
    barangId = serializers.IntegerField(
        min_value=1,
        error_messages={'required': 'Barang harus dipilih', 'invalid': 'Barang harus dipilih'},
    )
    jumlah = serializers.IntegerField(
        min_value=1,
        error_messages={'required': 'Jumlah minimal 1', 'min_value': 'Jumlah minimal 1'},
    )
    tanggal = serializers.DateField(error_messages={'required': 'Tanggal harus diisi'})
    catatan = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TransaksiMasukInputSerializer(TransaksiInputSerializer):
    supplier = required_text('Supplier harus diisi')


class TransaksiKeluarInputSerializer(TransaksiInputSerializer):
    alasan = required_text('Alasan harus diisi')
